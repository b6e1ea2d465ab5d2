"""Wire encoders for InfluxDB records."""

from influxreport.core.encoding.line_protocol import decode, encode, encode_lines

__all__ = ["decode", "encode", "encode_lines"]
