import pytest

from scopemetrics.config import env_adapter as env
from scopemetrics.utils.exceptions import ConfigError


def test_bool_truthy_values(monkeypatch):
    for v in ('1', 'true', 'YES', 'on', 'y'):
        monkeypatch.setenv('SCOPEMETRICS_FLAG', v)
        assert env.get_bool('SCOPEMETRICS_FLAG') is True
    monkeypatch.setenv('SCOPEMETRICS_FLAG', 'off')
    assert env.get_bool('SCOPEMETRICS_FLAG', True) is False
    monkeypatch.setenv('SCOPEMETRICS_FLAG', '  ')
    assert env.get_bool('SCOPEMETRICS_FLAG', True) is True


def test_numeric_parsing(monkeypatch):
    monkeypatch.setenv('SCOPEMETRICS_N', ' 42 ')
    assert env.get_int('SCOPEMETRICS_N', None) == 42
    assert env.get_float('SCOPEMETRICS_N', None) == 42.0
    assert env.get_int('SCOPEMETRICS_UNSET', 7) == 7
    monkeypatch.setenv('SCOPEMETRICS_N', '4x')
    with pytest.raises(ConfigError):
        env.get_int('SCOPEMETRICS_N', None)


def test_csv_and_tags(monkeypatch):
    monkeypatch.setenv('SCOPEMETRICS_LIST', 'a, b,,c')
    assert env.get_csv('SCOPEMETRICS_LIST') == ['a', 'b', 'c']
    assert env.get_csv('SCOPEMETRICS_LIST', transform=str.upper) == ['A', 'B', 'C']
    monkeypatch.setenv('SCOPEMETRICS_T', 'a=1,b=x=y,a=2')
    assert env.get_tags('SCOPEMETRICS_T') == {'a': '2', 'b': 'x=y'}
    assert env.get_tags('SCOPEMETRICS_NONE') is None
    monkeypatch.setenv('SCOPEMETRICS_F', '0.1, 2')
    assert env.get_float_csv('SCOPEMETRICS_F') == [0.1, 2.0]


def test_version_env_override(monkeypatch):
    from scopemetrics.version import __version__, get_version

    assert get_version() == __version__
    monkeypatch.setenv('SCOPEMETRICS_VERSION', '9.9.9')
    assert get_version() == '9.9.9'
