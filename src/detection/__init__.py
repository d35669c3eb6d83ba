"""
Face Landmarks Demo - Detection Module

This module wraps the face detection and facial landmarks networks.
"""

from .base import BaseDetection, load, mat_to_blob
from .face import FaceDetection
from .landmarks import FacialLandmarksDetection

__all__ = ['BaseDetection', 'FaceDetection', 'FacialLandmarksDetection', 'load', 'mat_to_blob']
