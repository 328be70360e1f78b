import random

import pytest

from game.logic.exceptions import EmptyBankError
from game.logic.words import WordBank
from game.server.settings import DEFAULT_WORDS_FILE


class TestWordBank:
    def test_categories(self):
        bank = WordBank({"Animals": ["Tiger"], "Food": ["Pizza", "Pretzel"]})
        assert bank.categories() == {"Animals", "Food"}

    def test_blank_entries_are_dropped(self):
        bank = WordBank({"Animals": ["  Tiger ", "", "   "], "  ": ["Pizza"], "Empty": []})
        assert bank.categories() == {"Animals"}
        assert bank.words("Animals") == ("Tiger",)

    def test_random_word_comes_from_category(self):
        bank = WordBank({"Food": ["Pizza", "Pretzel", "Popcorn"]}, rng=random.Random(1))
        for _ in range(20):
            assert bank.random_word("Food") in {"Pizza", "Pretzel", "Popcorn"}

    def test_random_category_is_loaded_category(self):
        bank = WordBank({"Animals": ["Tiger"], "Food": ["Pizza"]}, rng=random.Random(3))
        picks = {bank.random_category() for _ in range(50)}
        assert picks == {"Animals", "Food"}

    def test_repeats_are_permitted(self):
        bank = WordBank({"Animals": ["Tiger"]})
        assert bank.random_word("Animals") == bank.random_word("Animals") == "Tiger"

    def test_same_seed_same_picks(self):
        words = {"Animals": ["Tiger", "Penguin", "Dolphin"], "Food": ["Pizza", "Pretzel"]}
        first = WordBank(words, rng=random.Random(11))
        second = WordBank(words, rng=random.Random(11))
        assert [first.random_category() for _ in range(10)] == [second.random_category() for _ in range(10)]

    def test_empty_bank_raises_on_category(self):
        bank = WordBank({})
        assert bank.is_empty
        with pytest.raises(EmptyBankError):
            bank.random_category()

    def test_unknown_category_raises(self):
        bank = WordBank({"Animals": ["Tiger"]})
        with pytest.raises(EmptyBankError):
            bank.random_word("Food")


class TestWordBankFromCsv:
    def test_loads_category_word_rows(self, tmp_path):
        path = tmp_path / "words.csv"
        path.write_text("Category,Word\nAnimals,Tiger\nAnimals,Penguin\nFood,Pizza\n", encoding="utf-8")

        bank = WordBank.from_csv(path)

        assert bank.categories() == {"Animals", "Food"}
        assert bank.words("Animals") == ("Tiger", "Penguin")

    def test_skips_incomplete_rows(self, tmp_path):
        path = tmp_path / "words.csv"
        path.write_text("Category,Word\nAnimals,\n,Tiger\nFood,Pizza\n", encoding="utf-8")

        bank = WordBank.from_csv(path)

        assert bank.categories() == {"Food"}

    def test_keeps_german_letters(self, tmp_path):
        path = tmp_path / "words.csv"
        path.write_text("Category,Word\nEssen,Brötchen\n", encoding="utf-8")

        assert WordBank.from_csv(path).words("Essen") == ("Brötchen",)

    def test_missing_file_yields_empty_bank(self, tmp_path, caplog):
        bank = WordBank.from_csv(tmp_path / "missing.csv")

        assert bank.is_empty
        assert "failed to load word bank" in caplog.text

    def test_bundled_word_list_loads(self):
        bank = WordBank.from_csv(DEFAULT_WORDS_FILE)

        assert not bank.is_empty
        assert "Animals" in bank.categories()
