"""Operations: health probes and logging configuration."""
