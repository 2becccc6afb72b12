def pytest_configure(config):
    """
    Ensure the ``src`` directory is on sys.path so that ``import dicom_config``
    succeeds even when the package has not been installed.
    """
    import sys
    from pathlib import Path

    src_root = str(Path(__file__).resolve().parent / "src")
    if src_root not in sys.path:
        sys.path.insert(0, src_root)
