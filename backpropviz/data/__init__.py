"""Sample generation for training runs."""

from .samples import SampleStream, label_for, make_sample

__all__ = ["SampleStream", "label_for", "make_sample"]
