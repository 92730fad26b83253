"""
Unit tests for the pytest plugin configuration.
"""
import os
from unittest.mock import Mock, patch

import pytest

from embedmongo.distribution import Main, Version
from embedmongo.errors import InvalidArgumentError
from embedmongo.factory import EmbeddedMongoFactory, LifecycleState
from embedmongo.network import LOOPBACK_ADDRESS
from embedmongo.testing.pytest_plugin import create_factory, pytest_addoption


def _pytest_config(rootpath, **ini):
    config = Mock()
    config.rootpath = rootpath
    config.getini.side_effect = lambda name: ini.get(name, "")
    return config


def test_ini_options_are_registered():
    parser = Mock()

    pytest_addoption(parser)

    names = [c.args[0] for c in parser.addini.call_args_list]
    assert names == ["embedmongo_version", "embedmongo_port", "embedmongo_bind_ip"]


class TestCreateFactory:

    def test_defaults_without_configuration(self, tmp_path):
        factory = create_factory(_pytest_config(tmp_path))

        assert isinstance(factory, EmbeddedMongoFactory)
        assert factory.state == LifecycleState.UNSTARTED
        assert factory.builder.get_version() is Main.PRODUCTION
        assert factory.builder.get_bind_ip() == LOOPBACK_ADDRESS

    def test_ini_options_are_applied(self, tmp_path):
        config = _pytest_config(
            tmp_path,
            embedmongo_version="4.2.0",
            embedmongo_port="27017",
            embedmongo_bind_ip="127.0.0.1",
        )

        factory = create_factory(config)

        assert factory.builder.get_version() is Version.V4_2_0
        assert factory.builder.resolve_port() == 27017
        assert factory.builder.get_bind_ip() == "127.0.0.1"

    def test_ini_options_override_environment(self, tmp_path):
        (tmp_path / '.env').write_text("EMBEDMONGO_VERSION=7.0.14\nEMBEDMONGO_PORT=27100\n")

        with patch.dict(os.environ, {'EMBEDMONGO_BIND_IP': '127.0.0.3'}):
            factory = create_factory(_pytest_config(tmp_path, embedmongo_version="4.2.0"))

        assert factory.builder.get_version() is Version.V4_2_0
        assert factory.builder.resolve_port() == 27100
        assert factory.builder.get_bind_ip() == '127.0.0.3'

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_invalid_ini_port_is_rejected(self, tmp_path, port):
        with pytest.raises(InvalidArgumentError):
            create_factory(_pytest_config(tmp_path, embedmongo_port=port))
