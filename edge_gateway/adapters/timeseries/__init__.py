"""Time-series sink adapters."""

from edge_gateway.adapters.timeseries.base import AbstractTimeSeriesWriter
from edge_gateway.adapters.timeseries.influxdb import InfluxDBWriter

__all__ = ["AbstractTimeSeriesWriter", "InfluxDBWriter"]
