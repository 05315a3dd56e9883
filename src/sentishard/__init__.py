from sentishard._version import VERSION, __version__


def run_file(*args, **kwargs):
    from sentishard.parallel.coordinator import run_file as _run_file

    return _run_file(*args, **kwargs)


__all__ = ["VERSION", "__version__", "run_file"]
