from diriter import ObjectType


def snapshot(it):
    """Everything a caller can observe about the iterator's position."""
    info = {}
    object_type = it.get_object_info(info)
    return (
        it.is_empty(),
        it.path_name,
        it.sub_path_name,
        it.leaf_name,
        object_type,
        tuple(sorted(info.items())),
    )


def collect_sub_paths(it):
    result = []
    while not it.is_empty():
        assert_iterator_consistent(it)
        result.append(it.sub_path_name)
        it.advance()
    return result


def assert_iterator_consistent(it):
    root = it.root_path_name
    sep = "/"
    if it.is_empty():
        assert it.get_object_info() == ObjectType.NOT_FOUND
        assert it.path_name == ""
        assert it.get_object_path_name() == 0
        return
    path = it.path_name
    assert it.get_object_info() != ObjectType.NOT_FOUND
    assert path.startswith(root)
    assert it.leaf_name == path.rsplit(sep, 1)[-1]
    if len(path) > len(root):
        assert it.sub_path_name == path[len(root) + 1:]
    assert it.get_object_path_name() == len(path.encode())
    assert it.get_object_leaf_name() == len(it.leaf_name.encode())
    assert it.get_object_sub_path_name() == len(it.sub_path_name.encode())
