# imagediff/worker.py
"""
Request/response boundary: turns a `process` message into progress, result
or error messages posted to the caller.
"""

from typing import Any, Callable, Dict, Mapping
import logging

from imagediff.buffers import PixelBuffer
from imagediff.config import DiffConfig
from imagediff.diff_engine import DiffEngine
from imagediff.errors import ConfigurationError, ImageDiffError

logging.basicConfig(level=logging.INFO)

PostMessage = Callable[[Dict[str, Any]], None]


def progress_message(stage: str, progress: float) -> Dict[str, Any]:
    return {"type": "progress", "stage": stage, "progress": progress}


def error_message(message: str) -> Dict[str, Any]:
    return {"type": "error", "message": message}


def process_request(data: Mapping[str, Any], post: PostMessage) -> None:
    """
    Run one comparison request. Posts any number of progress messages and
    then exactly one `result` or `error` message.
    """
    try:
        for key in ("beforeData", "afterData", "width", "height"):
            if data.get(key) is None:
                raise ConfigurationError(f"Request is missing '{key}'")
        width, height = data["width"], data["height"]
        config = DiffConfig.from_dict(data)
        before = PixelBuffer.from_bytes(data["beforeData"], width, height)
        after = PixelBuffer.from_bytes(data["afterData"], width, height)
        engine = DiffEngine(config)
        result = engine.compute_diff(
            before, after, progress=lambda stage, value: post(progress_message(stage, value))
        )
    except ImageDiffError as e:
        logging.error(f"Diff request rejected: {e}")
        post(error_message(str(e)))
        return
    except Exception as e:
        logging.error(f"Unexpected failure handling diff request: {e}")
        post(error_message(str(e) or type(e).__name__))
        return
    post({
        "type": "result",
        "cleanedMask": result.cleaned_mask.tobytes(),
        "rawMask": result.raw_mask.tobytes(),
        "differingCount": result.differing_count,
    })


def handle_message(message: Mapping[str, Any], post: PostMessage) -> None:
    msg_type = message.get("type")
    if msg_type == "process":
        process_request(message.get("data") or {}, post)
    else:
        logging.warning(f"Ignoring message of unknown type: {msg_type!r}")
