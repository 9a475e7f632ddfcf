"""
DuoGen Language Buddy - Tkinter quiz with AI-generated lessons

Flow:
1. Home: pick a language (and an illustration quality).
2. Loading: the lesson is generated in the background.
3. Lesson: five multiple-choice questions, each with an AI illustration.
   Three lives; a wrong answer costs one.
4. Complete: score and lives left, then back home.

Setup (from repo root):

    python -m venv .venv
    source .venv/bin/activate   # or .venv\\Scripts\\activate on Windows
    pip install -e .

Ensure .env contains:
    OPENAI_API_KEY=sk-...

(or use the SET KEY button on the home screen). Then run:
    python main.py
"""

from duogen.app import run


if __name__ == "__main__":
    run()
