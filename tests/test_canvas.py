import numpy as np
import pytest

from absence.canvas import IDENTITY, Canvas

from conftest import make_frame


def test_context_is_shared():
    canvas = Canvas(320, 240)

    assert canvas.get_context("2d") is canvas.get_context()
    with pytest.raises(ValueError):
        canvas.get_context("webgl")


def test_translate_and_scale_compose():
    ctx = Canvas(640, 480).get_context()
    ctx.translate(640, 0)
    ctx.scale(-1, 1)

    assert ctx.transform == (-1.0, 0.0, 0.0, 1.0, 640.0, 0.0)
    ctx.reset_transform()
    assert ctx.transform == IDENTITY


def test_rotation_rejected():
    with pytest.raises(ValueError):
        Canvas().get_context().set_transform(0, 1, -1, 0, 0, 0)


def test_draw_image_identity_copies_pixels():
    frame = make_frame(64, 48)
    canvas = Canvas(64, 48)

    assert canvas.get_context().draw_image(frame, 0, 0, 64, 48)
    np.testing.assert_array_equal(canvas.buffer, frame)
    assert canvas.draw_count == 1


def test_draw_image_mirrored():
    frame = make_frame(64, 48)
    canvas = Canvas(64, 48)
    ctx = canvas.get_context()
    ctx.translate(canvas.width, 0)
    ctx.scale(-1, 1)
    ctx.draw_image(frame, 0, 0, canvas.width, canvas.height)

    np.testing.assert_array_equal(canvas.buffer, frame[:, ::-1])


def test_draw_image_resizes_to_destination():
    frame = np.full((480, 640, 3), 200, dtype=np.uint8)
    canvas = Canvas(320, 240)
    canvas.get_context().draw_image(frame, 0, 0, 320, 240)

    assert (canvas.buffer == 200).all()


def test_draw_image_clips_to_canvas():
    frame = np.full((20, 20, 3), 255, dtype=np.uint8)
    canvas = Canvas(30, 30)
    canvas.get_context().draw_image(frame, 20, 20)

    assert canvas.buffer[20:, 20:].all()
    assert not canvas.buffer[:20, :].any()


def test_draw_image_without_pixels_is_ignored():
    canvas = Canvas(10, 10)

    assert canvas.get_context().draw_image(None) is False
    assert canvas.draw_count == 0


def test_image_data_roundtrip_ignores_transform():
    canvas = Canvas(8, 8)
    ctx = canvas.get_context()
    ctx.scale(-1, 1)
    patch = np.full((2, 2, 3), 9, dtype=np.uint8)
    ctx.put_image_data(patch, 1, 1)

    np.testing.assert_array_equal(ctx.get_image_data(1, 1, 2, 2), patch)


def test_draw_listeners_and_save(tmp_path):
    canvas = Canvas(16, 16)
    seen = []
    canvas.on_draw(seen.append)
    canvas.get_context().draw_image(make_frame(16, 16))

    assert seen == [canvas]
    assert canvas.save(tmp_path / "photo.png")
    assert (tmp_path / "photo.png").is_file()
