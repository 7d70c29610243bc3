from config import Settings


def test_cors_origins_from_comma_list():
    settings = Settings(CORS_ORIGINS="https://a.example, https://b.example")

    assert settings.cors_origins_list == ["https://a.example", "https://b.example"]


def test_cors_origins_from_json_list():
    settings = Settings(CORS_ORIGINS='["https://a.example"]')

    assert settings.cors_origins_list == ["https://a.example"]


def test_cors_origins_default():
    assert Settings().cors_origins_list == ["*"]
