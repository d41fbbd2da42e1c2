import json

import pytest

from ums.config import UmsConfig, load_config
from ums.core.exceptions import ConfigurationError


def test_defaults():
    config = load_config(environ={})
    assert config == UmsConfig()
    assert config.database_config == {"database_path": "ums.db"}
    assert config.flat_file_dir == "ums_data"


def test_file_and_environment(tmp_path):
    path = tmp_path / "ums.json"
    path.write_text(json.dumps({"flat_file_dir": "from_file", "log_level": "debug"}))
    config = load_config(str(path), environ={"UMS_DATABASE_PATH": "/srv/ums.db"})
    assert config.flat_file_dir == "from_file"
    assert config.log_level == "DEBUG"
    assert config.database_config == {"database_path": "/srv/ums.db"}

    config = load_config(str(path), environ={"UMS_DATA_DIR": "/srv/data"})
    assert config.flat_file_dir == "/srv/data"


def test_database_path_override_ignored_for_postgresql(tmp_path):
    path = tmp_path / "ums.json"
    path.write_text(json.dumps({
        "database_type": "postgresql",
        "database_config": {"host": "db", "database": "ums"},
    }))
    config = load_config(str(path), environ={"UMS_DATABASE_PATH": "/srv/ums.db"})
    assert config.database_config == {"host": "db", "database": "ums"}


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps(["a", "list"]),
    json.dumps({"database_type": "oracle"}),
    json.dumps({"log_level": "LOUD"}),
])
def test_invalid_configuration(tmp_path, content):
    path = tmp_path / "ums.json"
    path.write_text(content)
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / "nope.json"), environ={})
