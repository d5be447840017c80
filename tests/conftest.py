"""Pytest configuration and shared fixtures."""

import io
import zipfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from social_analytics.database import get_session
from social_analytics.models import Base

# ---------------------------------------------------------------------------
# In-memory database fixtures
#
# We use a single shared SQLite connection for the entire test function so that
# data written by test fixtures and data read by the FastAPI route handlers
# both see the same state. SQLite :memory: databases are per-connection and
# data does not propagate across separate connections.
# ---------------------------------------------------------------------------


@pytest.fixture(scope="function")
def test_engine():
    """Create a fresh in-memory SQLite engine per test function."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _enable_fk(dbapi_conn, _):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_session(test_engine):
    """Yield a SQLAlchemy session backed by the in-memory database."""
    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------


@pytest.fixture(scope="function")
def client(test_engine, tmp_path):
    """Return a FastAPI TestClient with an isolated in-memory database.

    All route handler sessions share one SQLite connection via test_engine.
    """
    from social_analytics.main import app
    from social_analytics import database as app_db
    from social_analytics import config as app_config

    shared_connection = test_engine.connect()

    TestSession = sessionmaker(
        autocommit=False, autoflush=False, bind=shared_connection
    )

    def override_get_session():
        session = TestSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session

    # Mutate the field on the shared settings singleton in place so every
    # module that imported it sees the override; db_path derives from it.
    original_data_dir = app_config.settings.__dict__["data_dir"]
    app_config.settings.__dict__["data_dir"] = tmp_path

    # Patch the global engine used by init_db() so startup uses the test engine
    original_engine = app_db.engine
    original_session_local = app_db.SessionLocal
    app_db.engine = test_engine
    app_db.SessionLocal = TestSession

    with TestClient(app, raise_server_exceptions=True) as c:
        yield c

    app.dependency_overrides.clear()
    shared_connection.close()
    app_db.engine = original_engine
    app_db.SessionLocal = original_session_local
    app_config.settings.__dict__["data_dir"] = original_data_dir


# ---------------------------------------------------------------------------
# Archive builders
# ---------------------------------------------------------------------------


def build_zip(files: dict[str, str | bytes]) -> bytes:
    """ZIP the given ``{entry path: contents}``; str contents are UTF-8 encoded."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, contents in files.items():
            if isinstance(contents, str):
                contents = contents.encode("utf-8")
            archive.writestr(name, contents)
    return buffer.getvalue()


@pytest.fixture
def make_zip():
    return build_zip


INSTAGRAM_VIEWS_CSV = (
    "sep=,\n"
    '"Visualizações"\n'
    '"Data","Primary"\n'
    '"2024-01-01T00:00:00","100"\n'
    '"2024-01-02T00:00:00","200"\n'
)

INSTAGRAM_REACH_CSV = (
    "sep=,\n"
    '"Alcance"\n'
    '"Data","Primary"\n'
    '"2024-01-01T00:00:00","80"\n'
    '"2024-01-02T00:00:00","150"\n'
)

INSTAGRAM_AUDIENCE_CSV = (
    "Faixa etária e gênero\n"
    ",Mulheres,Homens\n"
    '"18-24",10,5\n'
    '"25-34",20,12\n'
    "Principais cidades\n"
    "São Paulo,Rio de Janeiro\n"
    "8.1,4.47\n"
)

INSTAGRAM_POSTS_CSV = (
    "Identificação do post,Nome da conta,Descrição,Horário de publicação,"
    "Link permanente,Tipo de post,Visualizações,Alcance,Curtidas,Comentários,"
    "Compartilhamentos,Salvamentos\n"
    "17900000000000001,Loja,Primeiro post,2024-01-01T10:00:00,"
    "https://www.instagram.com/p/AAA/,Reel,1000,800,50,5,3,7\n"
    "17900000000000002,Loja,Segundo post,2024-01-02T10:00:00,"
    "https://www.instagram.com/p/BBB/,,500,400,20,2,1,3\n"
)


@pytest.fixture
def instagram_archive() -> bytes:
    return build_zip(
        {
            "insights/Visualizações.csv": INSTAGRAM_VIEWS_CSV,
            "insights/Alcance.csv": INSTAGRAM_REACH_CSV,
            "insights/Público.csv": INSTAGRAM_AUDIENCE_CSV,
            "insights/Jan-01-2024_Feb-01-2024.csv": INSTAGRAM_POSTS_CSV,
        }
    )


YOUTUBE_VIDEOS_CSV = (
    "Conteúdo,Título do vídeo,Horário de publicação do vídeo,Duração,"
    "Visualizações,Tempo de exibição (horas),\"Marcações \"\"Gostei\"\"\",Comentários adicionados,"
    "Compartilhamentos,Inscrições obtidas,Impressões\n"
    "Total,,,,1500,30.5,60,6,4,12,9000\n"
    "abc123,Primeiro vídeo,2024-01-10T12:00:00,300,1000,20.5,40,4,3,10,6000\n"
    "def456,Segundo vídeo,2024-02-20T12:00:00,120,500,10,20,2,1,2,3000\n"
)

YOUTUBE_DEVICES_CSV = (
    "Tipo de dispositivo,Visualizações intencionais,Visualizações\n"
    "Total,900,1500\n"
    "Celular,600,1000\n"
    "Computador,300,500\n"
)

YOUTUBE_DEVICE_SERIES_CSV = (
    "Data,Tipo de dispositivo,Visualizações intencionais\n"
    "2024-02-10,Celular,100\n"
    "2024-02-10,Computador,40\n"
    "2024-02-20,Celular,50\n"
    "2024-01-01,Celular,300\n"
)

YOUTUBE_AGE_CSV = (
    "Idade do espectador,Visualizações (%),Duração média da visualização\n"
    "Total,100,0:01:30\n"
    "18-24 anos,60.5,0:01:40\n"
    "25-34 anos,39.5,0:01:10\n"
)


@pytest.fixture
def youtube_archive() -> bytes:
    return build_zip(
        {
            "Conteúdo 2024-01-01_2024-02-29 Canal/Dados da tabela.csv": YOUTUBE_VIDEOS_CSV,
            "Tipo de dispositivo 2024-01-01_2024-02-29 Canal/Dados da tabela.csv": YOUTUBE_DEVICES_CSV,
            "Tipo de dispositivo 2024-01-01_2024-02-29 Canal/Dados do gráfico.csv": YOUTUBE_DEVICE_SERIES_CSV,
            "Idade do espectador 2024-01-01_2024-02-29 Canal/Dados da tabela.csv": YOUTUBE_AGE_CSV,
        }
    )


TIKTOK_OVERVIEW_CSV = (
    "Date,Video Views,Profile Views,Likes,Comments,Shares\n"
    "2024-03-01,100,10,20,2,1\n"
    "2024-03-02,300,30,40,4,3\n"
)

TIKTOK_CONTENT_CSV = (
    "Time,Video title,Video link,Post time,Total likes,Total comments,Total shares,Total views\n"
    "2024-03-01,Dance,https://www.tiktok.com/@shop/video/1,2024-02-28,50,5,2,1000\n"
    "2024-03-02,Recipe,https://www.tiktok.com/@shop/video/2,2024-03-01,30,3,1,600\n"
)

TIKTOK_GENDER_CSV = "Gender,Distribution\nFemale,0.6\nMale,0.4\n"

TIKTOK_HISTORY_CSV = (
    "Date,Followers,Difference in followers from previous day\n"
    "2024-03-01,1000,5\n"
    "2024-03-02,1007,7\n"
)


@pytest.fixture
def tiktok_archive() -> bytes:
    return build_zip(
        {
            "Overview.csv": TIKTOK_OVERVIEW_CSV,
            "Content.csv": TIKTOK_CONTENT_CSV,
            "FollowerGender.csv": TIKTOK_GENDER_CSV,
            "FollowerHistory.csv": TIKTOK_HISTORY_CSV,
        }
    )
