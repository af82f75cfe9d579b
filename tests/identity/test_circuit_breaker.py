"""Redis-backed circuit breaker state."""
import pybreaker

from app.services.circuit_breaker import RedisCircuitBreakerStorage


class TestRedisCircuitBreakerStorage:
    def test_state_defaults_to_closed(self, fake_redis):
        fake_redis.get.return_value = None
        storage = RedisCircuitBreakerStorage("identity")
        assert storage.state == pybreaker.STATE_CLOSED

    def test_state_is_written_with_ttl(self, fake_redis):
        storage = RedisCircuitBreakerStorage("identity")
        storage.state = pybreaker.STATE_OPEN
        args, kwargs = fake_redis.set.call_args
        assert args == ("cb:identity:state", pybreaker.STATE_OPEN)
        assert kwargs["ex"] > 0

    def test_counter_reads_redis(self, fake_redis):
        fake_redis.get.return_value = "3"
        assert RedisCircuitBreakerStorage("identity").counter == 3

    def test_increment_and_reset(self, fake_redis):
        storage = RedisCircuitBreakerStorage("identity")
        storage.increment_counter()
        fake_redis.incr.assert_called_with("cb:identity:counter")
        storage.reset_counter()
        fake_redis.delete.assert_called_with("cb:identity:counter")
