"""Shared data model primitives."""

from market_digest.data_model.base import CamelFileModel, StrictBaseModel


__all__ = ["CamelFileModel", "StrictBaseModel"]
