# aintru/services/video_metrics.py
import json
from datetime import datetime, timezone
from typing import Any, Dict, List


def compute_video_metrics(frames: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Aggregate client-sent webcam frames into behavioral metrics:
      - frames_count
      - presence_pct: % of frames with a face detected
      - multiple_faces_pct: % of frames with more than one face
      - avg_emotions: per-emotion mean; keys come from the first frame
    """
    frames = frames or []
    total = len(frames)
    if total == 0:
        return {
            "frames_count": 0,
            "presence_pct": 0,
            "multiple_faces_pct": 0,
            "avg_emotions": {},
        }

    emotion_keys = list((frames[0].get("emotions") or {}).keys())
    emotion_sums = {k: 0.0 for k in emotion_keys}
    present = 0
    multiple = 0

    for f in frames:
        if f.get("face_detected"):
            present += 1
        if (f.get("num_faces") or 0) > 1:
            multiple += 1
        emotions = f.get("emotions") or {}
        for k in emotion_keys:
            emotion_sums[k] += float(emotions.get(k) or 0)

    return {
        "frames_count": total,
        "presence_pct": round(present / total * 100, 2),
        "multiple_faces_pct": round(multiple / total * 100, 2),
        "avg_emotions": {k: round(emotion_sums[k] / total, 3) for k in emotion_keys},
    }


def stamp_frame(frame: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the server-side receive time to a frame."""
    return {"timestamp": datetime.now(timezone.utc).isoformat(), **frame}


def behavior_paragraph(metrics: Dict[str, Any], heading: str) -> str:
    if not metrics:
        return ""
    return (
        f"\n\n{heading}\n"
        f"    - Face presence: {metrics.get('presence_pct', 0)}%\n"
        f"    - Multiple faces: {metrics.get('multiple_faces_pct', 0)}%\n"
        f"    - Avg emotions: {json.dumps(metrics.get('avg_emotions') or {})}"
    )
