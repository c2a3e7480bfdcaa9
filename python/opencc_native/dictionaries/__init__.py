"""Dictionary files bundled with opencc_native, read through importlib.resources."""
