import allure
from click.testing import CliRunner

from taskforge import __version__
from taskforge.main import taskforge

pytestmark = [
    allure.epic("CLI Bridge"),
    allure.feature("CLI"),
]


def test_version():
    assert __version__


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(taskforge, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
