"""Exceptions raised by the decoding core.

A beam search that runs out of valid states is not an error: it returns
``None`` and the caller falls back to greedy decoding. Only configuration and
input problems surface as exceptions.
"""


class SchemaConfigurationError(ValueError):
    """The label alphabet or tag schema cannot support decoding.

    Raised at load time for empty terminal sets, mixed tag schemes, labels
    whose value does not match their tag, or positions without candidates.
    """


class MalformedInputError(ValueError):
    """The score vectors or label sequences handed to the decoder are malformed."""
