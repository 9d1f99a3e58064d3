# tests/fixtures/plugins/failing.py


def run(inputs, context):
    raise RuntimeError("plugin exploded")
