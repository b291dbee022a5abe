"""Camera bring-up for the vision node."""

from app.camera.startup import StartedCamera, build_camera, start_camera, start_cameras

__all__ = [
    "StartedCamera",
    "build_camera",
    "start_camera",
    "start_cameras",
]
