from typing import Callable, Hashable, Iterable


def collect_unique[K: Hashable, E](
    arr: Iterable[E] | None, key: Callable[[E], K]
) -> dict[K, E]:
    """
    Map each element of `arr` to the key `key` derives for it.

    If several elements share a key, the last one wins. See
    `collect_grouped` to keep all of them.
    """
    result: dict[K, E] = {}
    if arr is None:
        return result

    for e in arr:
        k = key(e)
        result[k] = e

    return result


def collect_grouped[K: Hashable, E](
    arr: Iterable[E] | None, key: Callable[[E], K]
) -> dict[K, list[E]]:
    """
    Map each key `key` derives to every element of `arr` that produced it,
    in the order they appear in `arr`.
    """
    result: dict[K, list[E]] = {}
    if arr is None:
        return result

    for e in arr:
        k = key(e)
        if k not in result:
            result[k] = []

        result[k].append(e)

    return result


def duplicate_groups[K: Hashable, E](groups: dict[K, list[E]]) -> dict[K, list[E]]:
    dupes: dict[K, list[E]] = {}
    for k, es in groups.items():
        match len(es):
            case 0:
                assert False, f"Unexpected empty group for key {k!r}"
            case 1:
                pass
            case _:
                dupes[k] = es

    return dupes
