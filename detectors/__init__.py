# Detectors run over captured photos: face detection (face_detector) and
# MobileNet features (feature_extractor). Import the modules directly; both load mediapipe.
