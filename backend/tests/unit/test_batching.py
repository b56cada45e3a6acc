from healthscan_catalog.utils.batching import chunked, paced_chunks


def test_chunked_splits_evenly_and_keeps_remainder():
    assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
    assert list(chunked([], 3)) == []
    # non-positive sizes fall back to one item per chunk
    assert list(chunked([1, 2], 0)) == [[1], [2]]


def test_paced_chunks_sleeps_between_chunks_only():
    pauses = []
    chunks = list(paced_chunks(list(range(5)), 2, 0.25, sleep=pauses.append))
    assert chunks == [[0, 1], [2, 3], [4]]
    assert pauses == [0.25, 0.25]


def test_paced_chunks_without_delay_never_sleeps():
    pauses = []
    list(paced_chunks(list(range(5)), 1, 0, sleep=pauses.append))
    assert pauses == []
