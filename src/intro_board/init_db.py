"""Create the database schema without running migrations."""

from intro_board.core.settings import settings
from intro_board.db.session import create_tables


def main() -> None:
    """Initialize the database by creating all tables."""
    create_tables()
    print(f"Database initialized at {settings.database_url}.")


if __name__ == "__main__":
    main()
