from typing import Callable


def run_example(example: Callable[[], bool]) -> bool:
    """Run an example, print whether it passed and return the result."""
    result = example()
    if result:
        print("Passed the test!")
    else:
        print("Failed the test!")
    return result
