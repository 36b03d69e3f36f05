"""Tests for CredentialStore."""

from unittest.mock import MagicMock

from mrblame.config import Config, ProviderConfig
from mrblame.credentials import CredentialStore


class TestCredentialStore:
    def test_set_and_get(self):
        store = CredentialStore()

        store.set_token("gitlab", "glpat-1")

        assert store.get_token("gitlab") == "glpat-1"
        assert store.has_token("gitlab")
        assert not store.has_token("github")

    def test_empty_value_removes_token(self):
        store = CredentialStore({"gitlab": "glpat-1"})

        store.set_token("gitlab", "")

        assert store.get_token("gitlab") is None

    def test_listeners_receive_provider_id(self):
        store = CredentialStore()
        listener = MagicMock()
        unsubscribe = store.subscribe(listener)

        store.set_token("github", "ghp_1")
        store.delete_token("github")
        unsubscribe()
        store.set_token("github", "ghp_2")

        assert listener.call_count == 2
        listener.assert_called_with("github")
        assert store.listener_count == 0

    def test_load_from_environment(self):
        config = Config(
            github=ProviderConfig(
                base_url="https://github.com", token_env_var="MY_GH_TOKEN"
            )
        )
        store = CredentialStore()

        store.load_from_environment(
            config, {"GITLAB_TOKEN": " glpat-env \n", "MY_GH_TOKEN": "ghp_env"}
        )

        assert store.get_token("gitlab") == "glpat-env"
        assert store.get_token("github") == "ghp_env"

    def test_load_from_environment_without_tokens(self):
        store = CredentialStore()

        store.load_from_environment(Config(), {})

        assert not store.has_token("gitlab")
        assert not store.has_token("github")
