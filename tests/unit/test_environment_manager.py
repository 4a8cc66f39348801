import logging

import pytest
from dcmodel.errors import MalformedField
from dcmodel.MANAGERS.environment_manager import EnvironmentManager
from dcmodel.MODELS.raw_string import RawString
from dcmodel.PARSERS.compose_parser import ComposeParser


def _write(path, content):
    path.write_text(content)
    return path.name


def test_later_files_override_earlier(tmp_path):
    first = _write(tmp_path / 'base.env', "TAG=1.0\nPORT=80\n")
    second = _write(tmp_path / 'local.env', "TAG=2.0\n")
    manager = EnvironmentManager(str(tmp_path))
    variables = manager.get_variables([first, second], include_os_environ=False)
    assert variables == {'TAG': '2.0', 'PORT': '80'}


def test_process_environment_overrides_files(tmp_path, monkeypatch):
    env_file = _write(tmp_path / '.env', "TAG=1.0\n")
    monkeypatch.setenv('TAG', 'from-shell')
    variables = EnvironmentManager(str(tmp_path)).get_variables([env_file])
    assert variables['TAG'] == 'from-shell'


def test_process_environment_can_be_excluded(tmp_path, monkeypatch):
    monkeypatch.setenv('DCMODEL_TEST_ONLY', 'x')
    variables = EnvironmentManager(str(tmp_path)).get_variables(include_os_environ=False)
    assert variables == {}


def test_overrides_win(tmp_path, monkeypatch):
    env_file = _write(tmp_path / '.env', "TAG=1.0\n")
    monkeypatch.setenv('TAG', 'from-shell')
    variables = EnvironmentManager(str(tmp_path)).get_variables([env_file], overrides={'TAG': 'explicit'})
    assert variables['TAG'] == 'explicit'


def test_missing_file_is_skipped(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger='dcmodel'):
        variables = EnvironmentManager(str(tmp_path)).get_variables(['absent.env'], include_os_environ=False)
    assert variables == {}
    assert 'absent.env' in caplog.text


def test_inline_env_files(tmp_path):
    (tmp_path / 'common.env').write_text("LEVEL=info\nPRICE=$5\nREGION=eu\n")
    (tmp_path / 'web.env').write_text("LEVEL=debug\n")
    document = ComposeParser().parse_from_string("""
version: '3.8'
services:
  web:
    image: nginx
    env_file: [common.env, web.env]
    environment: {REGION: us, EXTRA: "1"}
  db:
    image: postgres
""")
    inlined = EnvironmentManager(str(tmp_path)).inline_env_files(document)
    web = inlined.services['web']
    assert web.env_file is None
    assert web.environment == {
        'LEVEL': RawString('debug'),
        'PRICE': RawString('$$5'),
        'REGION': RawString('us'),
        'EXTRA': RawString('1'),
    }
    assert inlined.services['db'] == document.services['db']
    assert document.services['web'].env_file == [RawString('common.env'), RawString('web.env')]


def test_inline_env_files_needs_resolved_paths(tmp_path):
    document = ComposeParser().parse_from_string(
        "version: '3.8'\nservices:\n  web:\n    image: nginx\n    env_file: ['${STAGE}.env']\n"
    )
    with pytest.raises(MalformedField) as excinfo:
        EnvironmentManager(str(tmp_path)).inline_env_files(document)
    assert excinfo.value.path == ('services', 'web', 'env_file', 0)
