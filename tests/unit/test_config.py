"""Unit tests for configuration system."""

import dataclasses
from pathlib import Path

import pytest
import yaml

import whisker
from whisker.config import (
    CompilerConfig,
    CompilerSettings,
    PartialsConfig,
    WhiskerConfig,
    create_default_config,
    find_config_file,
    load_config,
    load_config_from_dict,
    substitute_env_vars,
)
from whisker.loaders import FAILING_LOADER, DirectoryLoader, MappingLoader


class TestCompilerConfig:
    """Tests for the immutable compiler configuration."""

    def test_defaults(self) -> None:
        """Test default option values."""
        config = whisker.compiler()

        assert config.escape_html is True
        assert config.standards_mode is False
        assert config.default_value is None
        assert config.strict_variables is False
        assert config.loader is FAILING_LOADER

    def test_withers_return_new_instances(self, config: CompilerConfig) -> None:
        """Test that with_* methods leave the original untouched."""
        loader = MappingLoader({})
        derived = (
            config.with_escape_html(False)
            .with_standards_mode(True)
            .with_default_value("?")
            .with_loader(loader)
            .with_strict_variables(True)
        )

        assert derived == CompilerConfig(
            escape_html=False,
            standards_mode=True,
            default_value="?",
            loader=loader,
            strict_variables=True,
        )
        assert config == CompilerConfig()

    def test_frozen(self, config: CompilerConfig) -> None:
        """Test that configs cannot be mutated."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.escape_html = False  # type: ignore[misc]

    def test_compile(self, config: CompilerConfig) -> None:
        """Test compiling through a config."""
        template = config.with_escape_html(False).compile("{{a}}")

        assert template.config.escape_html is False
        assert template.render({"a": "<"}) == "<"

    def test_templates_keep_their_config(self, config: CompilerConfig) -> None:
        """Test that deriving a config does not affect compiled templates."""
        template = config.compile("{{a}}")
        config.with_default_value("x")

        assert template.render({}) == ""


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitute_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting an env var inside a string."""
        monkeypatch.setenv("WHISKER_TEST_DIR", "parts")

        assert substitute_env_vars("src/${WHISKER_TEST_DIR}") == "src/parts"

    def test_substitute_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substitution inside dicts and lists."""
        monkeypatch.setenv("WHISKER_TEST_VALUE", "v")

        data = {"a": ["${WHISKER_TEST_VALUE}", "x"], "b": {"c": "${WHISKER_TEST_VALUE}"}}

        assert substitute_env_vars(data) == {"a": ["v", "x"], "b": {"c": "v"}}

    def test_missing_env_var_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an unset variable is an error."""
        monkeypatch.delenv("WHISKER_UNSET_VAR", raising=False)

        with pytest.raises(ValueError, match="Environment variable not set: WHISKER_UNSET_VAR"):
            substitute_env_vars("${WHISKER_UNSET_VAR}")

    @pytest.mark.parametrize("value", [1, True, None, 2.5])
    def test_passthrough_non_string(self, value: object) -> None:
        """Test that non-string values are unchanged."""
        assert substitute_env_vars(value) == value


class TestLoadConfigFromDict:
    """Tests for building WhiskerConfig from parsed YAML."""

    def test_empty(self) -> None:
        """Test that an empty dict gives defaults."""
        config = load_config_from_dict({})

        assert config.compiler == CompilerSettings()
        assert config.partials == PartialsConfig()
        assert config.output.path is None

    def test_all_sections(self) -> None:
        """Test reading every section."""
        config = load_config_from_dict(
            {
                "compiler": {
                    "escape_html": False,
                    "standards_mode": True,
                    "default_value": "-",
                    "strict_variables": True,
                },
                "partials": {"directory": "parts", "suffix": ".hbs"},
                "output": {"path": "out.html"},
            }
        )

        assert config.compiler == CompilerSettings(
            escape_html=False, standards_mode=True, default_value="-", strict_variables=True
        )
        assert config.partials == PartialsConfig(directory="parts", suffix=".hbs")
        assert config.output.path == "out.html"

    def test_null_sections(self) -> None:
        """Test sections present but empty in YAML."""
        config = load_config_from_dict({"compiler": None, "partials": None})

        assert config.compiler == CompilerSettings()
        assert config.partials == PartialsConfig()

    def test_invalid_suffix(self) -> None:
        """Test that a suffix without a dot is rejected."""
        with pytest.raises(ValueError, match="must start with '.'"):
            load_config_from_dict({"partials": {"suffix": "mustache"}})

    def test_env_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test env vars in config values."""
        monkeypatch.setenv("WHISKER_TEST_DEFAULT", "n/a")

        config = load_config_from_dict({"compiler": {"default_value": "${WHISKER_TEST_DEFAULT}"}})

        assert config.compiler.default_value == "n/a"


class TestWhiskerConfig:
    """Tests for converting project settings to compiler options."""

    def test_to_compiler_config(self) -> None:
        """Test carrying compiler settings over."""
        config = WhiskerConfig(compiler=CompilerSettings(escape_html=False, default_value="?"))

        compiler_config = config.to_compiler_config()

        assert compiler_config.escape_html is False
        assert compiler_config.default_value == "?"
        assert compiler_config.loader is FAILING_LOADER

    def test_explicit_loader(self) -> None:
        """Test overriding the partial loader."""
        loader = MappingLoader({})

        assert WhiskerConfig().to_compiler_config(loader).loader is loader

    def test_partials_relative_to_config_file(self, tmp_path: Path) -> None:
        """Test that the partials directory is relative to the config file."""
        config_file = tmp_path / "whisker.yaml"
        config_file.write_text("partials:\n  directory: parts\n", encoding="utf-8")

        loader = load_config(config_file).make_loader()

        assert isinstance(loader, DirectoryLoader)
        assert loader.root == (tmp_path / "parts").resolve()

    def test_dot_whisker_base_dir(self, tmp_path: Path) -> None:
        """Test that .whisker/config.yaml resolves paths from the project root."""
        (tmp_path / ".whisker").mkdir()
        config_file = tmp_path / ".whisker" / "config.yaml"
        config_file.write_text("{}", encoding="utf-8")

        assert load_config(config_file).base_dir() == tmp_path.resolve()

    def test_base_dir_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the base directory without a config file."""
        monkeypatch.chdir(tmp_path)

        assert WhiskerConfig().base_dir() == tmp_path


class TestFindConfigFile:
    """Tests for config file discovery."""

    def test_none_found(self, tmp_path: Path) -> None:
        """Test a directory without config files."""
        assert find_config_file(tmp_path) is None

    def test_whisker_yaml(self, tmp_path: Path) -> None:
        """Test finding whisker.yaml."""
        (tmp_path / "whisker.yaml").write_text("{}", encoding="utf-8")

        assert find_config_file(tmp_path) == (tmp_path / "whisker.yaml").resolve()

    def test_dot_whisker_preferred(self, tmp_path: Path) -> None:
        """Test that .whisker/config.yaml wins over whisker.yaml."""
        (tmp_path / ".whisker").mkdir()
        (tmp_path / ".whisker" / "config.yaml").write_text("{}", encoding="utf-8")
        (tmp_path / "whisker.yaml").write_text("{}", encoding="utf-8")

        assert find_config_file(tmp_path) == (tmp_path / ".whisker" / "config.yaml").resolve()


class TestLoadConfig:
    """Tests for loading config files."""

    def test_explicit_missing_file(self, tmp_path: Path) -> None:
        """Test an explicit path that does not exist."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_auto_discover(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test discovery from the working directory."""
        (tmp_path / "whisker.yaml").write_text("compiler:\n  standards_mode: true\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.compiler.standards_mode is True
        assert config.config_path == (tmp_path / "whisker.yaml").resolve()

    def test_no_discovery(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test defaults when discovery is disabled."""
        (tmp_path / "whisker.yaml").write_text("compiler:\n  standards_mode: true\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        config = load_config(auto_discover=False)

        assert config.compiler.standards_mode is False
        assert config.config_path is None

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test an empty config file."""
        config_file = tmp_path / "whisker.yaml"
        config_file.write_text("", encoding="utf-8")

        assert load_config(config_file).compiler == CompilerSettings()


class TestCreateDefaultConfig:
    """Tests for the generated default config."""

    def test_is_valid_yaml(self) -> None:
        """Test that the default config parses and loads."""
        data = yaml.safe_load(create_default_config())
        config = load_config_from_dict(data)

        assert config.compiler == CompilerSettings()
        assert config.partials.directory == "partials"
        assert config.output.path is None
