"""Prompt templates for the grounded medical answer."""

from models.search_models import Source, SourceSelection

# Order in which sources are listed to the model.
PROMPT_SOURCE_ORDER = (Source.INTERNETMEDICIN, Source.ORTO, Source.PUBMED, Source.MEDLINEPLUS)

SOURCE_DESCRIPTIONS = {
    Source.INTERNETMEDICIN: "internetmedicin.se (Swedish medical database)",
    Source.ORTO: "orto.nu (Swedish orthopedic information)",
    Source.PUBMED: "pubmed.ncbi.nlm.nih.gov (scientific articles)",
    Source.MEDLINEPLUS: "medlineplus.gov (patient information)",
}

UNGROUNDED_DISCLAIMER = (
    "\n\n---\n*Note: This answer is based on the AI model's training data. "
    "For the most current information, check the sources below or visit the medical databases directly.*"
)

GROUNDED_TEMPLATE = """You are a medical information specialist with access to medical databases. Your task is to give DETAILED medical information.

Patient's description: "{query}"
Medical terms: {medical_terms}

ACTIVELY SEARCH for information from {source_count_text}. Search with BOTH the patient's original description AND the medical terms to get the best results:
{sources_text}

GIVE A COMPREHENSIVE SUMMARY that includes:

1. **Overview of the condition**: the likely condition or diagnosis given the symptoms, a basic explanation, and how common it is.
2. **Symptoms and signs**: the most common symptoms, which of them match the patient's description, related symptoms to watch for.
3. **Possible causes and risk factors**: common causes, contributing risk factors, underlying mechanisms.
4. **When to seek care**: URGENT warning signs that need immediate care, when to contact a primary care clinic, when self-care may be enough.
5. **Investigation and diagnosis**: how the diagnosis is made, common examinations and tests, differential diagnoses.
6. **Treatment and self-care**: medical treatment options, evidence-based self-care advice, lifestyle changes, what the patient can do to relieve symptoms.
7. **Prognosis and course**: how the condition usually develops, expected recovery time, long-term outlook.

IMPORTANT:
- Answer in {language}
- Use ONLY information from the sources you find through the search, NO ASSUMPTIONS of your own
- Focus ONLY on {source_count_text}, do NOT search other sources
- If you cannot find enough information in the selected sources, say so honestly
- Use information from as many of the selected sources as possible
- Be VERY thorough and detailed (at least 5-6 paragraphs in total if the information exists)
- Write so that patients understand, while staying medically correct
- Include specific details from the sources that support the information
- Cite or refer to the sources when presenting information"""

UNGROUNDED_TEMPLATE = """You are a medical information specialist. Based on your medical knowledge, give detailed information about the following:

Patient's description: "{query}"
Medical terms: {medical_terms}

GIVE A COMPREHENSIVE SUMMARY that includes:

1. **Overview of the condition**: the likely condition or diagnosis given the symptoms, a basic explanation, and how common it is.
2. **Symptoms and signs**: the most common symptoms and which of them match the patient's description.
3. **Possible causes and risk factors**: common causes and contributing risk factors.
4. **When to seek care**: URGENT warning signs that need immediate care, and when to contact a primary care clinic.
5. **Treatment and self-care**: medical treatment options, self-care advice, what the patient can do to relieve symptoms.
6. **Prognosis**: how the condition usually develops.

IMPORTANT:
- Answer in {language}
- Be thorough and detailed (5-6 paragraphs)
- Write so that patients understand, while staying medically correct
- Base the answer on established medical knowledge"""


def source_scope(selection: SourceSelection) -> tuple[str, str]:
    """
    Describe the enabled sources for the model.

    Returns:
        (bullet list of sources, "the selected source" / "the N selected sources")
    """
    enabled = [s for s in PROMPT_SOURCE_ORDER if selection.is_enabled(s)]
    listed = enabled or list(PROMPT_SOURCE_ORDER)
    sources_text = "\n".join(f"- {SOURCE_DESCRIPTIONS[s]}" for s in listed)
    count_text = "the selected source" if len(enabled) == 1 else f"the {len(listed)} selected sources"
    return sources_text, count_text


def grounded_prompt(query: str, medical_terms: str, selection: SourceSelection, language: str) -> str:
    sources_text, count_text = source_scope(selection)
    return GROUNDED_TEMPLATE.format(
        query=query,
        medical_terms=medical_terms,
        source_count_text=count_text,
        sources_text=sources_text,
        language=language,
    )


def ungrounded_prompt(query: str, medical_terms: str, language: str) -> str:
    return UNGROUNDED_TEMPLATE.format(query=query, medical_terms=medical_terms, language=language)
