"""Nestconf - nested test configuration for class-based test suites."""

from .annotations import Annotation, ComposedAnnotation, compose, find_annotation
from .cache import ResolutionCache
from .config import NestConfig, load_config
from .declaration import NestedTestConfiguration, has_explicit_mode, nested_test_configuration
from .descriptors import AnnotationDescriptor, find_all_annotations, find_annotation_descriptor
from .enclosing import enclosing_chain, enclosing_class
from .errors import AnnotationConfigurationError, NestconfError
from .resolver import (
    EnclosingConfigurationResolver,
    Resolution,
    effective_mode,
    get_default_resolver,
    is_configuration_inherited,
    reset_default_resolver,
)
from .tags import effective_tag_data, get_tag_data, tag
from .types import EnclosingConfiguration
from .version import __version__


__all__ = [
    # Declaration
    "EnclosingConfiguration",
    "NestedTestConfiguration",
    "nested_test_configuration",
    "has_explicit_mode",
    # Resolution
    "EnclosingConfigurationResolver",
    "Resolution",
    "ResolutionCache",
    "effective_mode",
    "is_configuration_inherited",
    "get_default_resolver",
    "reset_default_resolver",
    "enclosing_class",
    "enclosing_chain",
    # Annotations
    "Annotation",
    "ComposedAnnotation",
    "compose",
    "find_annotation",
    "AnnotationDescriptor",
    "find_annotation_descriptor",
    "find_all_annotations",
    # Tags
    "tag",
    "get_tag_data",
    "effective_tag_data",
    # Config
    "NestConfig",
    "load_config",
    # Errors
    "NestconfError",
    "AnnotationConfigurationError",
    "__version__",
]
