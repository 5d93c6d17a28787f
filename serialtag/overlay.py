# Drawing the recognition result on frames

from typing import Optional

import cv2

from serialtag.data_types import NOTHING_RECOGNIZED


def format_result(result: str) -> str:
    """
    Human readable text for a published result.
    """
    if result == NOTHING_RECOGNIZED:
        return "Recognized: Nothing"
    return f"Recognized: {result}"


def draw_result(frame, result: Optional[str], status: str = ""):
    """
    Draw the latest published result (and an optional status line)
    in the top-left corner of the frame.

    frame: numpy array (BGR), drawn in place
    result: published string, or None before the first cycle finished
    """
    text = format_result(result) if result is not None else "Performing recognition..."

    # dark background strip so the text stays readable on bright frames
    (tw, th), baseline = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2)
    cv2.rectangle(frame, (5, 5), (15 + tw, 15 + th + baseline), (0, 0, 0), -1)

    cv2.putText(
        frame,
        text,
        (10, 10 + th),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.8,
        (0, 255, 255),
        2,
        cv2.LINE_AA,
    )

    if status:
        cv2.putText(
            frame,
            status,
            (10, 45 + th),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.5,
            (0, 255, 0),
            1,
            cv2.LINE_AA,
        )

    return frame
