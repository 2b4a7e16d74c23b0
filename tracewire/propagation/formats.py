"""Carrier format tokens understood by ``Tracer.inject`` and ``Tracer.extract``."""


class Format(object):
    """A namespace for builtin carrier formats.

    These static constants are intended for use in the Tracer.inject() and
    Tracer.extract() methods. E.g.,

        tracer.inject(span, Format.BINARY, binary_carrier)

    """

    TEXT_MAP = "text_map"
    """
    The TEXT_MAP format represents SpanContexts in a ``dict`` mapping from
    strings to strings, such as an HTTP header collection.

    The carrier may contain unrelated entries; injection only adds keys
    under the ``tracewire-`` prefix and never removes anything.
    """

    BINARY = "binary"
    """
    The BINARY format represents SpanContexts in a fixed byte layout.

    The carrier is any object with a ``buffer`` attribute (see
    :class:`~tracewire.propagation.binary.BinaryCarrier`). Injection replaces
    the buffer wholesale.
    """


FORMAT_TEXT_MAP = Format.TEXT_MAP
FORMAT_BINARY = Format.BINARY
