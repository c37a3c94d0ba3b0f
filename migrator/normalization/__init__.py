from migrator.normalization.base import BaseNormalizer
from migrator.normalization.normalizer import UserNormalizer

__all__ = ["BaseNormalizer", "UserNormalizer"]
