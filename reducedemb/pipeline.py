"""
This module defines the contract of the face pipeline used to compute
embeddings on a cache miss.

The pipeline has three steps:
- detect(image): list of DetectedFace with five landmarks
- align(image, landmarks): normalized face crop
- embed(aligned): fixed-length embedding vector

Detection and embedding inference are provided by an external face
recognition model; this module only ships the default similarity alignment
onto the ArcFace 5-point template and the helpers around it.
"""

import importlib

import cv2
import numpy as np
import config


class Landmarks:
    """
    Five facial landmarks in image coordinates (x, y).

    Attributes:
        left_eye, right_eye, nose, left_mouth, right_mouth: (x, y) tuples
    """

    def __init__(self, left_eye, right_eye, nose, left_mouth, right_mouth):
        self.left_eye = tuple(left_eye)
        self.right_eye = tuple(right_eye)
        self.nose = tuple(nose)
        self.left_mouth = tuple(left_mouth)
        self.right_mouth = tuple(right_mouth)

    @classmethod
    def from_array(cls, points):
        points = np.asarray(points, dtype=np.float32).reshape(5, 2)
        return cls(*points.tolist())

    def to_array(self):
        return np.float32([self.left_eye, self.right_eye, self.nose, self.left_mouth, self.right_mouth])


class DetectedFace:
    def __init__(self, landmarks, bbox=None, score=None):
        self.landmarks = landmarks
        self.bbox = bbox
        self.score = score


class FacePipeline:
    """
    Base class of a face pipeline.

    Subclasses implement detect() and embed(). align() warps the face onto
    the ArcFace template and can be overridden.
    """

    align_size = config.ALIGN_SIZE

    def detect(self, image):
        raise NotImplementedError

    def align(self, image, landmarks):
        return align_face(image, landmarks, out_size=self.align_size)

    def embed(self, aligned):
        raise NotImplementedError


def load_image(path):
    """
    Read an image from disk as a BGR array.

    Raises:
        FileNotFoundError: If the image cannot be read
    """
    img = cv2.imread(str(path))
    if img is None:
        raise FileNotFoundError(f"Unable to read image: {path}")
    return img


def most_centered_face(faces, image_shape):
    """
    Select the face whose nose is closest to the image center.

    Distance is Manhattan distance; ties go to the lowest index.

    Args:
        faces: List of DetectedFace
        image_shape: Shape of the image array (height, width, ...)

    Returns:
        int: Index of the selected face
    """
    h, w = image_shape[:2]
    cx, cy = w / 2.0, h / 2.0

    distances = [abs(cx - f.landmarks.nose[0]) + abs(cy - f.landmarks.nose[1]) for f in faces]
    return int(np.argmin(distances))


def align_face(image, landmarks, out_size=config.ALIGN_SIZE):
    """
    Warp a face onto the ArcFace 5-point template with a similarity transform.

    Args:
        image: BGR image array
        landmarks: Landmarks of the face
        out_size: Side of the square output crop

    Returns:
        numpy.ndarray: Aligned face of shape (out_size, out_size, channels)
    """
    src = landmarks.to_array()
    dst = np.float32(config.ARCFACE_TEMPLATE) * (out_size / 112.0)

    M, _ = cv2.estimateAffinePartial2D(src, dst, method=cv2.LMEDS)
    if M is None:
        raise ValueError("Could not estimate alignment transform from landmarks.")

    return cv2.warpAffine(image, M, (out_size, out_size), flags=cv2.INTER_LINEAR)


def load_pipeline(spec):
    """
    Build a face pipeline from a "module:factory" import path.

    Args:
        spec: Import path such as "mypackage.faces:build_pipeline"

    Returns:
        FacePipeline: Object returned by calling the factory

    Raises:
        ValueError: If spec is not of the form "module:factory"
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Expected a face pipeline as 'module:factory', got '{spec}'")

    factory = getattr(importlib.import_module(module_name), attr)
    return factory()
