"""
MediaPipe face detector: fast presence check plus single-face landmarks
"""
import cv2
import mediapipe as mp

from config import settings


class FaceDetector:
    """MediaPipe-based face detector and face mesh"""

    def __init__(self, input_size=settings.PRESENCE_INPUT_SIZE,
                 min_detection_confidence=settings.PRESENCE_CONFIDENCE,
                 min_landmark_confidence=settings.LANDMARK_CONFIDENCE):
        self.input_size = input_size
        self.mp_face_detection = mp.solutions.face_detection
        self.mp_face_mesh = mp.solutions.face_mesh

        # Short-range model, the kiosk user stands within ~2m of the camera
        self.face_detection = self.mp_face_detection.FaceDetection(
            model_selection=0,
            min_detection_confidence=min_detection_confidence
        )

        # Samples arrive seconds apart, so every frame is a fresh still image
        self.face_mesh = self.mp_face_mesh.FaceMesh(
            static_image_mode=True,
            max_num_faces=1,
            refine_landmarks=False,
            min_detection_confidence=min_landmark_confidence
        )

    def _downscale(self, image):
        h, w = image.shape[:2]
        scale = self.input_size / max(h, w)
        if scale >= 1.0:
            return image
        return cv2.resize(image, (max(1, int(w * scale)), max(1, int(h * scale))),
                          interpolation=cv2.INTER_AREA)

    def detect(self, image):
        """Detect faces on a low-resolution copy, boxes in original pixels"""
        h, w = image.shape[:2]
        small = self._downscale(image)
        results = self.face_detection.process(cv2.cvtColor(small, cv2.COLOR_BGR2RGB))

        faces = []
        if results.detections:
            for detection in results.detections:
                bbox = detection.location_data.relative_bounding_box
                x = max(0, int(bbox.xmin * w))
                y = max(0, int(bbox.ymin * h))
                width = min(int(bbox.width * w), w - x)
                height = min(int(bbox.height * h), h - y)
                faces.append((x, y, width, height))

        return faces

    def get_landmarks(self, image):
        """468 (x, y) points of the most prominent face, or None"""
        image_rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        results = self.face_mesh.process(image_rgb)

        if not results.multi_face_landmarks:
            return None

        h, w = image.shape[:2]
        return [(landmark.x * w, landmark.y * h)
                for landmark in results.multi_face_landmarks[0].landmark]

    def close(self):
        for graph in (self.face_detection, self.face_mesh):
            if graph is not None:
                graph.close()
        self.face_detection = None
        self.face_mesh = None
