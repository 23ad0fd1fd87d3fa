ERRNUM_BUFFER_OVERFLOW = 484


class DIOutOfMemoryError(MemoryError):
    """Raised when the allocator refuses a reservation. Subclass of MemoryError."""
    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough memory: requested {requested} bytes, "
            f"only {available} bytes available."
        )


class DIHostError(OSError):
    """Raised for a failure reported by a catalogue reader. Subclass of OSError."""
    def __init__(self, errnum: int, message: str) -> None:
        self.errnum = errnum
        super().__init__(errnum, message)


class DIBufferOverflowError(DIHostError):
    """Raised by a catalogue reader whose buffer cannot hold even one entry."""
    def __init__(self, needed: int, available: int) -> None:
        self.needed = needed
        self.available = available
        super().__init__(
            ERRNUM_BUFFER_OVERFLOW,
            f"Buffer overflow: entry needs {needed} bytes, "
            f"only {available} bytes available.",
        )
