from .backbone import Architecture, BackboneFeatureExtractor, FeatureExtractor
from .cache import BottleneckCache, DatasetUsed

__all__ = [
    "Architecture",
    "BackboneFeatureExtractor",
    "FeatureExtractor",
    "BottleneckCache",
    "DatasetUsed",
]
