# tests/fixtures/plugins/bad_return.py


def run(inputs, context):
    return ["not", "a", "mapping"]
