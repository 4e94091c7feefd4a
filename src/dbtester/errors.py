"""Exception hierarchy.

Two tiers:
- ProvisioningError: the test environment itself is broken (database could not
  be created, migrated, seeded or dropped). Never caught by the library; test
  harnesses should let it abort the run.
- FixtureError: fixture data could not be loaded. Ordinary, recoverable error.
"""


class DBTesterError(Exception):
    """Base class for all dbtester errors."""


class ProvisioningError(DBTesterError):
    """Creating, migrating, seeding or dropping an ephemeral database failed."""


class MigrationError(DBTesterError):
    """A migration source is invalid or a migration step failed."""


class FixtureError(DBTesterError):
    """CSV fixture data could not be parsed or inserted."""
