"""
Tests for the .env generator
"""

from dotenv import dotenv_values

from generate_env import EnvGenerator


def test_generated_file_is_readable_by_dotenv(tmp_path):
    env_file = tmp_path / '.env'

    assert EnvGenerator(env_file=env_file).generate(force=True)

    values = dotenv_values(env_file)
    assert len(values['SECRET_KEY']) == 128
    assert values['ORDER_NUMBER_PREFIX'] == 'CMD'
    assert values['DISPATCH_MAX_RETRIES'] == '3'
    assert values['RATELIMIT_ENABLED'] == 'True'


def test_dev_mode_values(tmp_path):
    env_file = tmp_path / '.env'
    EnvGenerator(dev_mode=True, env_file=env_file).generate(force=True)

    values = dotenv_values(env_file)
    assert values['FLASK_DEBUG'] == 'True'
    assert values['RATELIMIT_ENABLED'] == 'False'


def test_overwrite_keeps_a_backup(tmp_path):
    env_file = tmp_path / '.env'
    env_file.write_text("SECRET_KEY=old\n")

    EnvGenerator(env_file=env_file).generate(force=True)

    backups = list(tmp_path.glob('.env.backup.*'))
    assert len(backups) == 1
    assert backups[0].read_text() == "SECRET_KEY=old\n"


def test_declining_leaves_existing_file(tmp_path, monkeypatch):
    env_file = tmp_path / '.env'
    env_file.write_text("SECRET_KEY=old\n")
    monkeypatch.setattr('builtins.input', lambda prompt: 'no')

    assert EnvGenerator(env_file=env_file).generate() is False
    assert env_file.read_text() == "SECRET_KEY=old\n"
