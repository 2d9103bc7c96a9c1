from docpilot.config import Settings
from docpilot.errors import ConfigurationError
from docpilot.models.types import (
    AnnotationResult,
    ChatRequest,
    ChatTurn,
    ContextBundle,
    Issue,
    RuleDocument,
    RuleMatch,
)
from docpilot.services.assistant import Assistant

DOC_ID = "1AbC_dEf-GhIjKlMnOp2345"
DOC_URL = f"https://docs.google.com/document/d/{DOC_ID}/edit"


class FakeGemini:
    enabled = True

    def __init__(self, answer="Write dates as 3 March 2024 [Dates]."):
        self.answer = answer
        self.contents = None

    def generate(self, contents, **kwargs):
        self.contents = contents
        return self.answer


class FakePinecone:
    enabled = True

    def describe_index_stats(self):
        return {"namespaces": {"writing-rules": {"vectorCount": 42}}, "totalVectorCount": 50, "dimension": 768}


class FakeDrive:
    def list_folder(self, folder_id):
        return [RuleDocument(id="a", title="Dates", mime_type="application/vnd.google-apps.document"),
                RuleDocument(id="b", title="Tone", mime_type="application/pdf")]


class FakeContext:
    def __init__(self):
        self.calls = []

    def gather(self, query, document_id=None):
        self.calls.append((query, document_id))
        return ContextBundle(
            vector_matches=[RuleMatch(title="Dates", text="Write 3 March 2024.", score=0.9, source="vector")],
            document_id=document_id,
        )


class FakeAnnotator:
    def __init__(self):
        self.calls = []

    def review(self, document_id, rules_text):
        self.calls.append((document_id, rules_text))
        return AnnotationResult(
            document_id=document_id,
            highlighted=1,
            comments=1,
            skipped=["gone"],
            issues=[Issue(text="3rd March", rule="Dates"), Issue(text="gone")],
        )


class FakeIndexer:
    def __init__(self, error=None):
        self.error = error

    def sync(self):
        if self.error:
            raise self.error
        return {"documents": 2, "chunks": 7, "upserted": 7}


def make_assistant(**overrides):
    parts = dict(
        gemini=FakeGemini(),
        pinecone=FakePinecone(),
        drive=FakeDrive(),
        docs=None,
        context=FakeContext(),
        annotator=FakeAnnotator(),
        indexer=FakeIndexer(),
    )
    parts.update(overrides)
    return Assistant(Settings(rules_folder_id="folder"), **parts)


def test_empty_message():
    resp = make_assistant().handle(ChatRequest(message="  "))
    assert resp.success is False
    assert resp.message


def test_help():
    resp = make_assistant().handle(ChatRequest(message="help"))
    assert resp.success is True
    assert resp.command == "help"
    assert "review" in resp.message


def test_ask_uses_context_and_history():
    gemini = FakeGemini()
    a = make_assistant(gemini=gemini)
    req = ChatRequest(
        message="How should we write dates?",
        conversationHistory=[ChatTurn(role="user", content="hi"), ChatTurn(role="assistant", content="hello")],
    )
    resp = a.handle(req)
    assert resp.success is True
    assert resp.command == "ask"
    assert resp.sources == ["Dates"]
    roles = [c["role"] for c in gemini.contents]
    assert roles == ["user", "model", "user"]
    assert "Write 3 March 2024." in gemini.contents[-1]["parts"][0]["text"]


def test_ask_empty_answer_is_failure():
    resp = make_assistant(gemini=FakeGemini(answer="")).handle(ChatRequest(message="How do I write numbers?"))
    assert resp.success is False


def test_annotate_with_url():
    annotator = FakeAnnotator()
    resp = make_assistant(annotator=annotator).handle(ChatRequest(message=f"please review {DOC_URL}"))
    assert resp.success is True
    assert resp.command == "annotate"
    assert resp.document_id == DOC_ID
    assert annotator.calls == [(DOC_ID, "[Dates]\nWrite 3 March 2024.")]
    assert "Found 2 issue(s)" in resp.message
    assert "1 could not be located" in resp.message


def test_annotate_takes_document_from_history():
    annotator = FakeAnnotator()
    req = ChatRequest(
        message="now review the document",
        conversationHistory=[ChatTurn(role="user", content=f"what is this? {DOC_URL}")],
    )
    resp = make_assistant(annotator=annotator).handle(req)
    assert resp.success is True
    assert annotator.calls[0][0] == DOC_ID


def test_annotate_without_document():
    resp = make_assistant().handle(ChatRequest(message="review my document"))
    assert resp.success is False
    assert "link" in resp.message


def test_sync_rules_and_configuration_error():
    resp = make_assistant().handle(ChatRequest(message="sync the rules"))
    assert resp.success is True
    assert resp.stats["chunks"] == 7

    failing = make_assistant(indexer=FakeIndexer(ConfigurationError("PINECONE_API_KEY and PINECONE_HOST must be set")))
    resp = failing.handle(ChatRequest(message="sync the rules"))
    assert resp.success is False
    assert resp.command == "sync_rules"
    assert "PINECONE_API_KEY" in resp.message


def test_unexpected_error_is_reported():
    resp = make_assistant(indexer=FakeIndexer(RuntimeError("boom"))).handle(ChatRequest(message="reindex the rules"))
    assert resp.success is False
    assert "boom" in resp.message


def test_index_stats_and_list_rules():
    a = make_assistant()
    resp = a.handle(ChatRequest(message="index stats"))
    assert resp.success is True
    assert "42 vector(s)" in resp.message

    resp = a.handle(ChatRequest(message="list the rule documents"))
    assert resp.success is True
    assert resp.sources == ["Dates", "Tone"]
