"""Unit tests for shared Redis connection helpers."""

from revalidator.redis.connection import (
    build_arq_redis_settings,
    build_redis_pool_kwargs,
    create_redis_client,
)


def test_build_arq_redis_settings_uses_custom_values(test_settings):
    settings = test_settings.model_copy(
        update={
            "redis_db": 2,
            "redis_conn_timeout": 7,
            "redis_conn_retries": 9,
            "redis_conn_retry_delay": 3,
            "redis_retry_on_timeout": False,
            "redis_max_connections": 120,
        }
    )

    redis_settings = build_arq_redis_settings(settings)

    assert redis_settings.host == settings.redis_host
    assert redis_settings.port == settings.redis_port
    assert redis_settings.database == 2
    assert redis_settings.conn_timeout == 7
    assert redis_settings.conn_retries == 9
    assert redis_settings.retry_on_timeout is False
    assert redis_settings.max_connections == 120


def test_build_redis_pool_kwargs_omits_unset_options(test_settings):
    kwargs = build_redis_pool_kwargs(test_settings, decode_responses=True)

    assert kwargs["decode_responses"] is True
    assert "max_connections" not in kwargs
    assert "db" not in kwargs


def test_create_redis_client_decodes_responses(test_settings):
    client = create_redis_client(test_settings.model_copy(update={"redis_db": 4}))

    pool_kwargs = client.connection_pool.connection_kwargs
    assert pool_kwargs["decode_responses"] is True
    assert pool_kwargs["db"] == 4
    assert pool_kwargs["host"] == "localhost"
