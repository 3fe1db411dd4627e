# Eye counts as open when lid distance / eye width is above this
EYE_OPEN_THRESHOLD = 0.25

# Seconds the eyes must stay open after a blink before the face counts as live
BLINK_DELAY = 2.0

# Seconds after which a recorded blink stops counting (None = never expires)
BLINK_MAX_AGE = None

# MediaPipe face mesh indices, ordered outer/inner corner at 0 and 3,
# upper lid at 1-2, lower lid at 4-5
LEFT_EYE_IDX = [33, 160, 158, 133, 153, 144]
RIGHT_EYE_IDX = [362, 385, 387, 263, 373, 380]
