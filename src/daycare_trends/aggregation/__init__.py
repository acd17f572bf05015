"""Corpus-wide statistics derived from daily analyses."""

from daycare_trends.aggregation.aggregator import AggregateOutputs, NoDataError, aggregate

__all__ = ["AggregateOutputs", "NoDataError", "aggregate"]
