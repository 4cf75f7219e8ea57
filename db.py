from sqlmodel import create_engine, Session, SQLModel

from settings import get_settings

settings = get_settings()

engine = create_engine(
    settings.DATABASE_URL,
    echo=False
)

def create_db_and_tables():
    SQLModel.metadata.create_all(engine)

# Dependency: Database session
def get_session():
    with Session(engine) as session:
        yield session
