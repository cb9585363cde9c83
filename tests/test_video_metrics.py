from aintru.services.video_metrics import compute_video_metrics, stamp_frame, behavior_paragraph


def test_no_frames():
    assert compute_video_metrics([]) == {
        "frames_count": 0,
        "presence_pct": 0,
        "multiple_faces_pct": 0,
        "avg_emotions": {},
    }
    assert compute_video_metrics(None)["frames_count"] == 0


def test_percentages_and_emotion_means():
    frames = [
        {"face_detected": True, "num_faces": 1, "emotions": {"happy": 0.9, "neutral": 0.1}},
        {"face_detected": True, "num_faces": 2, "emotions": {"happy": 0.3, "neutral": 0.6}},
        {"face_detected": False, "num_faces": 0, "emotions": {"happy": 0.0}},
    ]
    m = compute_video_metrics(frames)

    assert m["frames_count"] == 3
    assert m["presence_pct"] == 66.67
    assert m["multiple_faces_pct"] == 33.33
    assert m["avg_emotions"] == {"happy": 0.4, "neutral": 0.233}


def test_emotion_keys_come_from_first_frame():
    frames = [
        {"face_detected": True, "num_faces": 1, "emotions": {"calm": 1.0}},
        {"face_detected": True, "num_faces": 1, "emotions": {"calm": 0.5, "angry": 1.0}},
    ]
    assert compute_video_metrics(frames)["avg_emotions"] == {"calm": 0.75}


def test_stamp_frame_adds_timestamp_and_keeps_fields():
    stamped = stamp_frame({"face_detected": True})
    assert stamped["face_detected"] is True
    assert "T" in stamped["timestamp"]


def test_behavior_paragraph():
    assert behavior_paragraph(None, "Video:") == ""
    text = behavior_paragraph(
        {"presence_pct": 90.0, "multiple_faces_pct": 0, "avg_emotions": {"happy": 0.5}},
        "Video:",
    )
    assert "Video:" in text
    assert "Face presence: 90.0%" in text
    assert '{"happy": 0.5}' in text
