"""
Tests for nonce generation.
"""

import asyncio
import threading

import pytest

from cryptsy.exchange.nonce import NonceGenerator


class TestNonceGenerator:
    """NonceGenerator tests"""

    def test_values_strictly_increase(self):
        generator = NonceGenerator()
        values = [generator.next() for _ in range(1000)]

        assert all(b > a for a, b in zip(values, values[1:]))

    def test_same_clock_tick_falls_back_to_increment(self):
        generator = NonceGenerator(clock=lambda: 5000)

        assert [generator.next() for _ in range(3)] == [5000, 5001, 5002]

    def test_clock_going_backwards_never_decreases(self):
        readings = iter([900, 500, 100, 950])
        generator = NonceGenerator(clock=lambda: next(readings))

        values = [generator.next() for _ in range(4)]

        assert values == [900, 901, 902, 950]

    def test_clock_advancing_is_followed(self):
        readings = iter([10, 20, 30])
        generator = NonceGenerator(clock=lambda: next(readings))

        assert [generator.next() for _ in range(3)] == [10, 20, 30]
        assert generator.last == 30

    def test_default_clock_is_wall_clock_microseconds(self):
        import time

        before = time.time_ns() // 1000
        value = NonceGenerator().next()
        after = time.time_ns() // 1000

        assert before <= value <= after

    def test_concurrent_threads_never_share_or_reorder(self):
        generator = NonceGenerator(clock=lambda: 42)
        results = []
        lock = threading.Lock()

        def worker():
            local = [generator.next() for _ in range(500)]
            assert all(b > a for a, b in zip(local, local[1:]))
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8 * 500
        assert len(set(results)) == len(results)

    @pytest.mark.asyncio
    async def test_concurrent_coroutines_get_distinct_increasing_values(self):
        generator = NonceGenerator()
        issued = []

        async def issue():
            await asyncio.sleep(0)
            issued.append(generator.next())

        await asyncio.gather(*(issue() for _ in range(200)))

        assert len(set(issued)) == 200
        # Issue order is completion order, so the list itself is increasing
        assert issued == sorted(issued)

    def test_for_key_returns_shared_generator(self):
        first = NonceGenerator.for_key("shared-key")
        second = NonceGenerator.for_key("shared-key")
        other = NonceGenerator.for_key("another-key")

        assert first is second
        assert first is not other

        a = first.next()
        b = second.next()
        assert b > a
