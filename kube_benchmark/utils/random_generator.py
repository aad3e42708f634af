import random
import string
import threading


class RandomGenerator:
    """Process-wide random source; every draw holds the lock so creators can share it."""

    LETTERS = string.ascii_lowercase
    DIGITS = string.digits

    _random = random.Random()
    _lock = threading.Lock()

    @staticmethod
    def seed(value):
        with RandomGenerator._lock:
            RandomGenerator._random.seed(value)

    @staticmethod
    def randint(low: int, high: int) -> int:
        with RandomGenerator._lock:
            return RandomGenerator._random.randint(low, high)

    @staticmethod
    def get_random_chunk(length: int) -> str:
        """
        Random alphanumeric chunk: length // 2 letters followed by the remaining digits.

        :param length: Number of characters, at least 2
        """
        num_letters = length // 2
        num_digits = length - num_letters
        with RandomGenerator._lock:
            letters = RandomGenerator._random.choices(RandomGenerator.LETTERS, k=num_letters)
            digits = RandomGenerator._random.choices(RandomGenerator.DIGITS, k=num_digits)
        return ''.join(letters) + ''.join(digits)
