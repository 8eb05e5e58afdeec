"""IntentClassifier 单元测试"""

import pytest
from crmpilot.core.models import TicketPriority, Urgency
from crmpilot.nlu import GENERAL_INTENT, IntentClassifier, IntentPattern


@pytest.fixture
def classifier() -> IntentClassifier:
    return IntentClassifier()


class TestClassifyIntent:
    """意图打分测试"""

    def test_login_issue(self, classifier: IntentClassifier):
        """关键词 login/password 各 1 分 + 两条正则各 2 分，乘以权重 1.2"""
        result = classifier.classify_intent("I can't login, password incorrect, urgent!!")

        assert result.primary_intent == "login_issue"
        assert result.confidence == pytest.approx(7.2)
        assert result.all_scores["login_issue"] == pytest.approx(7.2)

    def test_all_scores_cover_every_intent(self, classifier: IntentClassifier):
        result = classifier.classify_intent("hello")
        assert set(result.all_scores) == set(classifier.intent_names)

    def test_no_match_is_general(self, classifier: IntentClassifier):
        """无任何命中时返回 general / 0"""
        result = classifier.classify_intent("Hello there, have a nice day")

        assert result.primary_intent == GENERAL_INTENT
        assert result.confidence == 0

    def test_empty_and_none_message(self, classifier: IntentClassifier):
        assert classifier.classify_intent("").primary_intent == GENERAL_INTENT
        assert classifier.classify_intent(None).confidence == 0

    def test_keywords_count_every_occurrence(self, classifier: IntentClassifier):
        """关键词按出现次数累加"""
        result = classifier.classify_intent("slow slow slow")
        assert result.all_scores["performance_issue"] == pytest.approx(3 * 1.2)

    def test_keywords_match_whole_words_only(self, classifier: IntentClassifier):
        """address 中的 add 不算命中"""
        result = classifier.classify_intent("my address")
        assert result.all_scores["feature_request"] == 0

    def test_patterns_case_insensitive(self, classifier: IntentClassifier):
        result = classifier.classify_intent("PAYMENT FAILED again")
        assert result.primary_intent == "billing_issue"

    def test_tie_goes_to_first_intent(self):
        """同分时取意图表中靠前的意图"""
        classifier = IntentClassifier(
            [
                IntentPattern(name="first", keywords=["foo"]),
                IntentPattern(name="second", keywords=["foo"]),
            ]
        )
        result = classifier.classify_intent("foo")

        assert result.primary_intent == "first"
        assert result.all_scores == {"first": 1.0, "second": 1.0}

    def test_weight_applied(self):
        classifier = IntentClassifier(
            [
                IntentPattern(name="plain", keywords=["sync"]),
                IntentPattern(name="heavy", keywords=["sync"], weight=2.0),
            ]
        )
        result = classifier.classify_intent("sync")

        assert result.primary_intent == "heavy"
        assert result.confidence == 2.0


class TestExtractEntities:
    """实体抽取测试"""

    def test_extracts_known_entities(self):
        message = (
            "Seeing error E503 in Chrome 118, see https://status.example.com/x "
            "or write to ops@example.com"
        )
        entities = IntentClassifier.extract_entities(message)

        assert entities["error_code"] == ["error E503"]
        assert entities["browser"] == ["Chrome 118"]
        assert entities["url"] == ["https://status.example.com/x"]
        assert entities["email"] == ["ops@example.com"]

    def test_only_matched_types_returned(self):
        assert IntentClassifier.extract_entities("nothing to see") == {}
        assert IntentClassifier.extract_entities(None) == {}


class TestAnalyzeUrgency:
    """紧急度测试"""

    def test_urgent_keyword(self):
        assert IntentClassifier.analyze_urgency("This is URGENT", TicketPriority.LOW) == Urgency.HIGH

    def test_high_priority(self):
        assert IntentClassifier.analyze_urgency("hi", "High") == Urgency.HIGH

    def test_moderate_keyword(self):
        assert IntentClassifier.analyze_urgency("this is blocking us", "Low") == Urgency.MEDIUM

    def test_medium_priority(self):
        assert IntentClassifier.analyze_urgency("hi", TicketPriority.MEDIUM) == Urgency.MEDIUM

    def test_low(self):
        assert IntentClassifier.analyze_urgency("hi", TicketPriority.LOW) == Urgency.LOW
        assert IntentClassifier.analyze_urgency(None, None) == Urgency.LOW
