"""
Shared fixtures for the cidian test suite.
"""

import pytest

from cidian.db.connection import create_schema, dispose_engines, get_engine, get_session
from cidian.dictionary import Lexicon


# A small CC-CEDICT excerpt covering homographs, homophones and
# traditional/simplified pairs.
SAMPLE_CEDICT = """\
# CC-CEDICT
# Community maintained free Chinese-English dictionary.
中 中 [zhong1] /China/Chinese/surname Zhong/
中文 中文 [Zhong1 wen2] /Chinese language/
文 文 [wen2] /language/culture/writing/
殿下 殿下 [dian4 xia4] /His Highness/Her Highness/
殿 殿 [dian4] /palace hall/
下 下 [xia4] /down/downwards/below/
電 电 [dian4] /electric/electricity/electrical/
點 点 [dian3] /point/dot/o'clock/
你好 你好 [ni3 hao3] /hello/hi/
你 你 [ni3] /you (informal)/
好 好 [hao3] /good/well/
好 好 [hao4] /to be fond of/
女 女 [nu:3] /female/woman/
綠 绿 [lu:4] /green/
西 西 [xi1] /west/
安 安 [an1] /calm/peaceful/
西安 西安 [Xi1 an1] /Xi'an, capital of Shaanxi/
"""


@pytest.fixture
def sample_lines():
    """The sample dictionary as a list of lines."""
    return SAMPLE_CEDICT.splitlines(keepends=True)


@pytest.fixture
def lexicon(sample_lines):
    """Lexicon built from the sample dictionary."""
    return Lexicon.from_lines(sample_lines)


@pytest.fixture
def cedict_file(tmp_path):
    """The sample dictionary written to disk."""
    path = tmp_path / "cedict_ts.u8"
    path.write_text(SAMPLE_CEDICT, encoding="utf-8")
    return path


@pytest.fixture
def db_session():
    """Session on an empty in-memory database with the schema created."""
    engine = get_engine(":memory:")
    create_schema(engine)
    session = get_session(engine=engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture(autouse=True)
def close_engines():
    """Release file database engines opened during a test."""
    yield
    dispose_engines()
