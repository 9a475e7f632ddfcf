from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

pytest.importorskip("tkinter")

from duogen.app import ResponsiveImage


def image_area():
    """Stand-in for a ResponsiveImage that needs no display."""
    area = SimpleNamespace(
        _image_bytes=None,
        _undecodable=None,
        _original_image=None,
        _update_display=Mock(),
    )
    area.set_placeholder = Mock()
    return area


def test_undecodable_image_is_decoded_and_logged_once():
    area = image_area()
    payload = b"not an image"

    with patch("duogen.app.logger") as mock_logger:
        assert ResponsiveImage.set_image_bytes(area, payload) is False
        assert ResponsiveImage.set_image_bytes(area, payload) is False
        assert ResponsiveImage.set_image_bytes(area, payload) is False

    mock_logger.img_error.assert_called_once()
    area.set_placeholder.assert_called_once_with("[Could not display image]")
    area._update_display.assert_not_called()


def test_new_payload_is_decoded_after_a_failure():
    area = image_area()
    ResponsiveImage.set_image_bytes(area, b"not an image")

    decoded = Mock()
    with patch("duogen.app.Image.open", return_value=decoded) as mock_open:
        assert ResponsiveImage.set_image_bytes(area, b"real png") is True

    mock_open.assert_called_once()
    assert area._original_image is decoded
    area._update_display.assert_called_once()
