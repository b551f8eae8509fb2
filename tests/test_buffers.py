import numpy as np
import pytest

from causaltopos.backend import BufferPool


def test_scope_releases_buffers():
    pool = BufferPool()
    with pool.scope():
        a = pool.zeros((4, 3))
        pool.stack([np.ones(3), np.ones(3)])
        assert pool.live_buffers == 2
        assert pool.live_bytes == a.nbytes + 2 * 3 * 8
    assert pool.live_buffers == 0
    assert pool.peak_bytes == 4 * 3 * 8 + 2 * 3 * 8


def test_nested_scopes():
    pool = BufferPool(np.float32)
    with pool.scope():
        pool.zeros(2)
        with pool.scope():
            pool.zeros(2)
            assert pool.live_buffers == 2
        assert pool.live_buffers == 1


def test_allocation_outside_scope_fails():
    with pytest.raises(RuntimeError):
        BufferPool().zeros(3)


def test_export_copies():
    pool = BufferPool()
    with pool.scope():
        buf = pool.zeros(3)
        out = pool.export(buf)
    buf[0] = 5.0
    assert out[0] == 0.0


def test_scope_released_on_error():
    pool = BufferPool()
    with pytest.raises(ValueError):
        with pool.scope():
            pool.zeros(3)
            raise ValueError("boom")
    assert pool.live_buffers == 0
