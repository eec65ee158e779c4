#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the mimetree library.

This module defines the exception classes raised by the engine and by the
built-in plugins. Hook exceptions are never wrapped: whatever a creation hook
raises propagates unchanged to the caller of ``create``/``parse``.

Exception Hierarchy
-------------------
- MimeTreeError (base exception)

  - ValidationError (invalid tags, arguments or options)
    - TagResolutionError (no tag resolvable for a node)

  - FormatError (tag lookups that cannot be satisfied)
    - TypeNotRegisteredError (parse with an unknown tag)
    - ParserNotFoundError (tag registered without a parser)

  - ParsingError (a format parser rejected its input)

  - SerializationError (a serializer could not emit a node)

  - HookError (creation hook broke its contract)

  - SecurityError (security violations)
    - NetworkSecurityError (blocked hosts, oversized content, disabled network)

  - DependencyError (missing/incompatible packages)

"""

from __future__ import annotations

from typing import Any


class MimeTreeError(Exception):
    """Base exception class for all mimetree-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(MimeTreeError):
    """Exception raised for invalid input parameters, tags or options.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class TagResolutionError(ValidationError):
    """Exception raised when a node reaches the factory without any tag.

    Parameters
    ----------
    kind : str, optional
        Kind of the node that could not be tagged

    """

    def __init__(self, kind: str | None = None):
        """Initialize the tag resolution error."""
        message = "No tag provided"
        if kind:
            message += f" for node of kind '{kind}'"
        super().__init__(message, parameter_name="tag", parameter_value=None)
        self.kind = kind


class FormatError(MimeTreeError):
    """Exception raised when a tag cannot be handled by the registry.

    Parameters
    ----------
    message : str, optional
        Custom error message
    tag : str, optional
        The tag that could not be handled
    registered_tags : list[str], optional
        Tags currently known to the registry, for reference
    original_error : Exception, optional
        The original exception that caused this error

    Attributes
    ----------
    tag : str or None
        The tag that failed
    registered_tags : list[str] or None
        Available tags

    """

    def __init__(
        self,
        message: str | None = None,
        tag: str | None = None,
        registered_tags: list[str] | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the format error."""
        if message is None:
            if tag:
                message = f"Unsupported tag: '{tag}'"
                if registered_tags:
                    tags_str = ", ".join(registered_tags[:5])
                    if len(registered_tags) > 5:
                        tags_str += f" (and {len(registered_tags) - 5} more)"
                    message += f". Registered tags include: {tags_str}"
            else:
                message = "Tag is not supported"

        super().__init__(message, original_error=original_error)
        self.tag = tag
        self.registered_tags = registered_tags


class TypeNotRegisteredError(FormatError):
    """Exception raised when parsing with a tag no plugin registered."""

    def __init__(self, tag: str, registered_tags: list[str] | None = None):
        """Initialize the error for an unregistered tag."""
        if registered_tags:
            message = f"Type '{tag}' is not registered. Registered types: {', '.join(registered_tags)}"
        else:
            message = "No types have been registered. Please register plugins before parsing."
        super().__init__(message, tag=tag, registered_tags=registered_tags)


class ParserNotFoundError(FormatError):
    """Exception raised when a registered tag has no parser."""

    def __init__(self, tag: str):
        """Initialize the error for a tag without parser."""
        super().__init__(f"No parser found for {tag}", tag=tag)


class ParsingError(MimeTreeError):
    """Exception raised when a format parser rejects its input.

    Parameters
    ----------
    message : str
        Description of the parsing failure
    tag : str, optional
        Tag of the parser that failed
    original_error : Exception, optional
        The underlying exception that caused the parsing failure

    """

    def __init__(self, message: str, tag: str | None = None, original_error: Exception | None = None):
        """Initialize the parsing error."""
        super().__init__(message, original_error)
        self.tag = tag


class SerializationError(MimeTreeError):
    """Exception raised when a serializer cannot emit a node.

    Parameters
    ----------
    message : str
        Description of the failure
    tag : str, optional
        Target tag of the serializer
    original_error : Exception, optional
        The underlying exception

    """

    def __init__(self, message: str, tag: str | None = None, original_error: Exception | None = None):
        """Initialize the serialization error."""
        super().__init__(message, original_error)
        self.tag = tag


class HookError(MimeTreeError):
    """Exception raised when a creation hook breaks its contract.

    Exceptions raised *inside* hooks are not converted to this type.

    Parameters
    ----------
    message : str
        Description of the violation
    hook_name : str, optional
        Name of the offending hook

    """

    def __init__(self, message: str, hook_name: str | None = None):
        """Initialize the hook error."""
        super().__init__(message)
        self.hook_name = hook_name


class SecurityError(MimeTreeError):
    """Base exception for security violations."""


class NetworkSecurityError(SecurityError):
    """Exception raised when a network policy violation is detected.

    This includes blocked hosts, invalid URLs, oversized responses and
    globally disabled network access.

    """


class DependencyError(MimeTreeError):
    """Exception raised when required dependencies are not available.

    Parameters
    ----------
    plugin_name : str
        Name of the plugin requiring dependencies
    missing_packages : list[tuple[str, str]]
        List of (package_name, version_spec) tuples for missing packages
    version_mismatches : list[tuple[str, str, str]], optional
        List of (package_name, required_version, installed_version) tuples
    original_import_error : ImportError, optional
        The first import error encountered

    """

    def __init__(
        self,
        plugin_name: str,
        missing_packages: list[tuple[str, str]],
        version_mismatches: list[tuple[str, str, str]] | None = None,
        original_import_error: ImportError | None = None,
    ):
        """Initialize the dependency error with package details."""
        version_mismatches = version_mismatches or []
        message_parts = []

        if missing_packages:
            pkg_list = ", ".join(f"'{name}{spec}'" if spec else f"'{name}'" for name, spec in missing_packages)
            message_parts.append(f"The {plugin_name} plugin requires the following packages: {pkg_list}")

        if version_mismatches:
            mismatch_str = ", ".join(
                f"'{name}' (requires {required}, but {installed} is installed)"
                for name, required, installed in version_mismatches
            )
            message_parts.append(f"The {plugin_name} plugin has version mismatches: {mismatch_str}")

        message = "\n".join(message_parts)
        all_packages = missing_packages + [(name, req) for name, req, _ in version_mismatches]
        if all_packages:
            packages_str = " ".join(f'"{name}{spec}"' if spec else name for name, spec in all_packages)
            message += f"\nInstall with: pip install --upgrade {packages_str}"

        super().__init__(message, original_error=original_import_error)
        self.plugin_name = plugin_name
        self.missing_packages = missing_packages
        self.version_mismatches = version_mismatches
