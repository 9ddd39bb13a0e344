from compliance_monitor.compliance.patterns import DEFAULT_LIBRARY, PATTERN_LIBRARY_VERSION, PatternLibrary
from compliance_monitor.services.types import MatchLocation, PatternCategory


def detectors(hits):
    return {hit.detector for hit in hits}


def test_find_hits_detects_each_regex_shape():
    hits = DEFAULT_LIBRARY.find_hits("SSN 123-45-6789, mail jo@example.org, call 5551234567 on 3/14/2024")
    assert detectors(hits) == {"ssn", "email", "phone", "date"}
    categories = {hit.detector: hit.category for hit in hits}
    assert categories["ssn"] is PatternCategory.IDENTIFIER
    assert categories["email"] is PatternCategory.CONTACT
    assert categories["phone"] is PatternCategory.CONTACT
    assert categories["date"] is PatternCategory.DATE


def test_find_hits_returns_nothing_for_plain_text():
    assert DEFAULT_LIBRARY.find_hits("The weather is pleasant today.") == frozenset()


def test_medical_terms_are_case_insensitive_and_distinct():
    hits = DEFAULT_LIBRARY.find_hits("PATIENT asked about Therapy. The patient declined therapy.")
    assert detectors(hits) == {"term:patient", "term:therapy"}
    assert all(hit.weight == 0.1 for hit in hits)


def test_phone_requires_ten_or_eleven_digits():
    assert detectors(DEFAULT_LIBRARY.find_hits("ref 555123456")) == set()
    assert detectors(DEFAULT_LIBRARY.find_hits("ref 15551234567")) == {"phone"}
    assert detectors(DEFAULT_LIBRARY.find_hits("ref 155512345678")) == set()


def test_collect_hits_counts_regex_detector_once_across_both_texts():
    hits = DEFAULT_LIBRARY.collect_hits("SSN 123-45-6789", "Also 987-65-4321")
    ssn_hits = [hit for hit in hits if hit.detector == "ssn"]
    assert len(ssn_hits) == 1
    assert ssn_hits[0].matched_in is MatchLocation.INPUT


def test_collect_hits_marks_output_side_matches():
    hits = DEFAULT_LIBRARY.collect_hits("Summarise the note", "Reach her at ann@clinic.com about therapy")
    locations = {hit.detector: hit.matched_in for hit in hits}
    assert locations == {"email": MatchLocation.OUTPUT, "term:therapy": MatchLocation.OUTPUT}


def test_collect_hits_counts_each_distinct_term_once():
    hits = DEFAULT_LIBRARY.collect_hits("patient symptom", "patient symptom surgery")
    assert sorted(detectors(hits)) == ["term:patient", "term:surgery", "term:symptom"]


def test_custom_library_keeps_version():
    library = PatternLibrary(version="test-1", medical_terms=("oncology",))
    hits = library.collect_hits("oncology referral", "patient")
    assert library.version == "test-1"
    assert detectors(hits) == {"term:oncology"}
    assert DEFAULT_LIBRARY.version == PATTERN_LIBRARY_VERSION
