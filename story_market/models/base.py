from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for the marketplace ORM tables.

    The tables are mostly used through Core connections (select/insert/update
    on the mapped classes) so that readers and writers can share the caller's
    transaction.
    """

    pass
