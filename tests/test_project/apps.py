from django.apps import AppConfig


class TestProjectConfig(AppConfig):
    name = "tests.test_project"
    label = "test_project"
