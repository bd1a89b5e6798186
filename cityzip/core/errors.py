"""Exception types raised by the resolution engine and its collaborators."""


class CityZipError(Exception):
    """Base class for all cityzip errors."""


class ReferenceStoreError(CityZipError):
    """The reference store could not be reached or a lookup failed.

    Distinct from an empty lookup: "this city is not in our data" is a normal
    result, while this error means the data could not be read at all.
    """


class SourceError(CityZipError):
    """A reference data provider failed to deliver postal codes."""


class RulesError(CityZipError):
    """A location rules file is missing, malformed or has invalid values."""
