"""Shared types for the dbtester package."""

Params = tuple | list | dict
ParamsList = list[tuple] | list[list]
