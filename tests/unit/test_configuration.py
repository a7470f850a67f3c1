import os

import pytest

from aws_fargate_service.configuration import (
    SettingsError,
    StackConfig,
    load_settings,
    resolve_deployment,
    resolve_log_level,
    stack_config_from_settings,
    validate_settings,
)

SETTINGS_FILE = os.path.join(os.path.dirname(__file__), "..", "..", "settings.yml")

VALID_SETTINGS = """
global:
  app_name: MyApp
  domain_name: example.org
service:
  name: admin
  certificate_arn: arn:aws:acm:us-east-1:123456789012:certificate/abc
"""


def stack_config(**kwargs):
    return StackConfig(app_name="CDKTest", app_env="uat", domain_name="example.com", **kwargs)


def test_resource_and_stack_ids():
    config = stack_config()
    assert config.get_resource_id("AdminService") == "CDKTest-uat-AdminService"
    assert config.get_stack_id("admin") == "CDKTest-uat-admin"


def test_secret_names():
    config = stack_config(account="123456789012", region="eu-west-1")
    assert config.get_secret_name("admin") == "CDKTest/uat/admin"
    assert config.get_secret_base_arn() == "arn:aws:secretsmanager:eu-west-1:123456789012:secret:CDKTest/uat"


def test_secret_base_arn_without_account_uses_tokens():
    arn = stack_config().get_secret_base_arn()
    assert arn.startswith("arn:aws:secretsmanager:")
    assert arn.endswith(":secret:CDKTest/uat")
    assert "None" not in arn


def test_hostname():
    config = stack_config()
    assert config.get_hostname("admin.") == "admin.example.com"
    assert config.get_hostname() == "example.com"


def test_load_repository_settings():
    settings = load_settings(SETTINGS_FILE)
    config = stack_config_from_settings(settings)
    assert config.app_name == "CDKTest"
    assert config.app_env == "uat"
    assert settings["service"]["name"] == "admin"


def test_load_settings(tmp_path):
    path = tmp_path / "settings.yml"
    path.write_text(VALID_SETTINGS)
    settings = load_settings(str(path))
    config = stack_config_from_settings(settings, region="us-east-1")
    assert config == StackConfig(app_name="MyApp", app_env="uat", domain_name="example.org",
        region="us-east-1")


def test_app_env_override():
    settings = validate_settings({
        "global": {"app_name": "MyApp", "app_env": "staging", "domain_name": "example.org"},
        "service": {"name": "admin", "certificate_arn": "arn"},
    })
    assert stack_config_from_settings(settings).app_env == "staging"
    assert stack_config_from_settings(settings, app_env="prod").app_env == "prod"


def test_missing_settings_file(tmp_path):
    with pytest.raises(SettingsError, match="not found"):
        load_settings(str(tmp_path / "missing.yml"))


def test_settings_not_a_mapping(tmp_path):
    path = tmp_path / "settings.yml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(SettingsError):
        load_settings(str(path))


def test_missing_required_setting():
    with pytest.raises(SettingsError, match="global.domain_name"):
        validate_settings({
            "global": {"app_name": "MyApp"},
            "service": {"name": "admin", "certificate_arn": "arn"},
        })
    with pytest.raises(SettingsError, match="service.certificate_arn"):
        validate_settings({
            "global": {"app_name": "MyApp", "domain_name": "example.org"},
            "service": {"name": "admin"},
        })


DEPLOYMENT_SETTINGS = {
    "global": {"app_name": "CDKTest", "app_env": "staging", "domain_name": "example.com"},
    "service": {
        "name": "admin",
        "certificate_arn": "arn",
        "image_version": "v1",
        "repository_name": "my-repository",
    },
}


def deployment_settings(**service):
    return {
        "global": dict(DEPLOYMENT_SETTINGS["global"]),
        "service": dict(DEPLOYMENT_SETTINGS["service"], **service),
    }


def context(**values):
    return values.get


def test_deployment_uses_settings_without_overrides():
    stack_config, image_version, repository_name = resolve_deployment(
        deployment_settings(), context(), {})
    assert stack_config.app_env == "staging"
    assert stack_config.account is None
    assert image_version == "v1"
    assert repository_name == "my-repository"


def test_app_env_variable_beats_settings():
    stack_config, _, _ = resolve_deployment(deployment_settings(), context(), {"APP_ENV": "prod"})
    assert stack_config.app_env == "prod"


def test_app_env_context_beats_variable():
    stack_config, _, _ = resolve_deployment(deployment_settings(), context(appEnv="dev"),
        {"APP_ENV": "prod"})
    assert stack_config.app_env == "dev"


def test_app_env_defaults_to_uat():
    settings = deployment_settings()
    del settings["global"]["app_env"]
    stack_config, _, _ = resolve_deployment(settings, context(), {})
    assert stack_config.app_env == "uat"


def test_image_version_context_beats_settings():
    _, image_version, _ = resolve_deployment(deployment_settings(), context(imageVersion="v2"), {})
    assert image_version == "v2"


def test_image_version_defaults_to_placeholder():
    _, image_version, _ = resolve_deployment(deployment_settings(image_version=None), context(), {})
    assert image_version == "default"


def test_repository_name_falls_back_to_resource_id():
    _, _, repository_name = resolve_deployment(deployment_settings(repository_name=None),
        context(appEnv="prod"), {})
    assert repository_name == "cdktest-prod-admin"


def test_deployment_account_and_region_from_environment():
    stack_config, _, _ = resolve_deployment(deployment_settings(), context(),
        {"CDK_DEFAULT_ACCOUNT": "123456789012", "CDK_DEFAULT_REGION": "eu-west-1"})
    assert stack_config.account == "123456789012"
    assert stack_config.region == "eu-west-1"
    assert stack_config.get_secret_base_arn() == "arn:aws:secretsmanager:eu-west-1:123456789012:secret:CDKTest/staging"


def test_log_level():
    assert resolve_log_level({}) == "INFO"
    assert resolve_log_level({"LOG_LEVEL": "info"}) == "INFO"
    assert resolve_log_level({"LOG_LEVEL": "Debug"}) == "DEBUG"
