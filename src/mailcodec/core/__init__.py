"""Codec core: value types, encodings, MIME decoding and outbound encoding."""
