"""Static stage, task and resource catalogue for the migration pathway.

Stage order in ``STAGE_BLUEPRINTS`` is the canonical plan order. Task ids are
the durable key for stored completion state and must not be renamed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Literal, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict

from .profile import Profile, is_skilled_stream

ProfilePredicate = Callable[[Profile], bool]
ResourceCategory = Literal["points", "skills", "visa", "settlement", "partner"]


class TaskLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    href: str


class Resource(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    href: str
    category: ResourceCategory


@dataclass(frozen=True)
class TaskBlueprint:
    id: str
    title: str
    detail: Optional[str] = None
    link: Optional[TaskLink] = None
    applies: Optional[ProfilePredicate] = None

    def is_applicable(self, profile: Profile) -> bool:
        return self.applies is None or bool(self.applies(profile))


@dataclass(frozen=True)
class StageBlueprint:
    id: str
    title: str
    summary: str
    duration_weeks: int
    milestone: str
    applies: ProfilePredicate
    tasks: Tuple[TaskBlueprint, ...]
    resources: Tuple[Resource, ...]

    def is_applicable(self, profile: Profile) -> bool:
        return bool(self.applies(profile))


def _always(profile: Profile) -> bool:
    return True


def _state_nominated(profile: Profile) -> bool:
    return profile.visa_stream in ("190", "491")


def _partner_involved(profile: Profile) -> bool:
    return profile.visa_stream == "partner" or profile.has_partner


VISA_STREAM_LABELS: Dict[str, str] = {
    "189": "189 • Skilled Independent",
    "190": "190 • Skilled Nominated",
    "491": "491 • Skilled Regional (Provisional)",
    "partner": "Partner (309/100 or 820/801)",
    "graduate": "485 • Temporary Graduate",
}

REGION_LABELS: Dict[str, str] = {
    "national": "Open to anywhere",
    "nsw": "New South Wales",
    "vic": "Victoria",
    "qld": "Queensland",
    "sa": "South Australia",
    "wa": "Western Australia",
    "tas": "Tasmania",
    "act": "Australian Capital Territory",
    "nt": "Northern Territory",
}

PACE_LABELS: Dict[str, str] = {
    "accelerated": "Accelerated (fast track)",
    "standard": "Standard (balanced)",
    "relaxed": "Deliberate (more buffer)",
}

ENGLISH_TEST_LABELS: Dict[str, str] = {
    "IELTS": "IELTS Academic / General",
    "PTE": "PTE Academic",
    "TOEFL": "TOEFL iBT",
    "Cambridge": "Cambridge C1 Advanced",
    "None": "Already exempt",
}


STAGE_BLUEPRINTS: Tuple[StageBlueprint, ...] = (
    StageBlueprint(
        id="foundations",
        title="Strategy & Eligibility Foundations",
        summary=(
            "Confirm that you meet the visa criteria, map your evidence trail, and get organised "
            "before spending money."
        ),
        duration_weeks=2,
        milestone="Points or relationship evidence documented and ImmiAccount created.",
        applies=_always,
        tasks=(
            TaskBlueprint(
                id="foundation-points-audit",
                title="Complete the official points test and log your target score",
                detail=(
                    "Record each claim (age, English, skilled employment, partners, qualifications) "
                    "with supporting documents in a tracker."
                ),
                link=TaskLink(
                    label="Department points calculator",
                    href="https://immi.homeaffairs.gov.au/help-support/tools/points-calculator",
                ),
                applies=is_skilled_stream,
            ),
            TaskBlueprint(
                id="foundation-anzsco",
                title="Validate your nominated occupation and ANZSCO tasks",
                detail=(
                    "Match your work history to the ANZSCO description that best suits the skills "
                    "assessment authority you will use."
                ),
                link=TaskLink(label="ANZSCO search", href="https://www.abs.gov.au/anzsco"),
                applies=is_skilled_stream,
            ),
            TaskBlueprint(
                id="foundation-relationship-map",
                title="Compile a relationship timeline and joint evidence bundle",
                detail=(
                    "Outline key dates, shared finances, travel, and communication history. Collect "
                    "Form 888 statutory declarations early."
                ),
                link=TaskLink(
                    label="Partner evidence guide",
                    href=(
                        "https://immi.homeaffairs.gov.au/visas/getting-a-visa/visa-listing/"
                        "partner-migrant/relationship-evidence"
                    ),
                ),
                applies=_partner_involved,
            ),
            TaskBlueprint(
                id="foundation-document-hub",
                title="Set up a secure document hub with clear naming conventions",
                detail=(
                    "Use cloud storage (Google Drive, Dropbox, Notion) with folders per visa stage "
                    "and include version control."
                ),
            ),
            TaskBlueprint(
                id="foundation-immiaccount",
                title="Create or update your ImmiAccount and grant access to partner (if required)",
                detail=(
                    "Ensure the email address used for the application will remain active for "
                    "multi-year processing times."
                ),
                link=TaskLink(label="ImmiAccount", href="https://online.immi.gov.au/"),
            ),
            TaskBlueprint(
                id="foundation-calendar",
                title="Block key milestones and reminders in your calendar",
                detail=(
                    "Add tasks for English testing, skills assessment expiry dates, health checks, "
                    "and police clearances."
                ),
            ),
            TaskBlueprint(
                id="foundation-state-intent",
                title="List state or territory programs that align with your skills",
                detail=(
                    "Capture eligibility notes, job offers required, offshore/onshore status, and "
                    "expression of interest nuances."
                ),
                applies=_state_nominated,
            ),
        ),
        resources=(
            Resource(
                title="GSM overview",
                description="Department primer on General Skilled Migration pathways and requirements.",
                href="https://immi.homeaffairs.gov.au/what-we-do/skilled-migration-program",
                category="points",
            ),
            Resource(
                title="Evidence checklist guidance",
                description="Understand which documents are needed for each visa claim and how to organise them.",
                href="https://immi.homeaffairs.gov.au/visas/supporting-evidence",
                category="skills",
            ),
        ),
    ),
    StageBlueprint(
        id="english-prep",
        title="English Proficiency Preparation",
        summary=(
            "Lock in the English test that maximises your points and create a realistic study and "
            "test booking plan."
        ),
        duration_weeks=4,
        milestone="Target score achieved and certificate saved in document hub.",
        applies=lambda profile: profile.needs_english_exam,
        tasks=(
            TaskBlueprint(
                id="english-select-test",
                title="Select the English test format that best suits your strengths",
                detail=(
                    "Compare IELTS, PTE, TOEFL, and Cambridge acceptance for your visa stream and "
                    "potential points uplift."
                ),
                link=TaskLink(
                    label="English test comparison",
                    href=(
                        "https://immi.homeaffairs.gov.au/visas/working-in-australia/skillselect/"
                        "points-tested-skilled-migration-points-table"
                    ),
                ),
            ),
            TaskBlueprint(
                id="english-book-exam",
                title="Book your exam date with contingency for retakes",
                detail=(
                    "Aim for an exam 6–8 weeks from now and reserve funds/time for a second sitting "
                    "before visa validity deadlines."
                ),
            ),
            TaskBlueprint(
                id="english-study-plan",
                title="Create a study plan aligned to your target band scores",
                detail=(
                    "Allocate weekly tasks covering writing, speaking, listening, and reading with "
                    "full mock tests each fortnight."
                ),
            ),
            TaskBlueprint(
                id="english-proof-partner",
                title="Assess partner English or arrange functional English payment",
                detail=(
                    "Collect partner English evidence (IELTS 4.5 equivalent) or budget for the second "
                    "installment if not available."
                ),
                applies=lambda profile: profile.has_partner,
            ),
        ),
        resources=(
            Resource(
                title="IELTS vs PTE guide",
                description="Understand grading differences and which exam offers faster turnaround.",
                href="https://www.ielts.org/about-ielts/ielts-for-australia",
                category="skills",
            ),
            Resource(
                title="NAATI CCL overview",
                description="Gain extra points through Community Language certification to boost your EOI.",
                href="https://www.naati.com.au/certification/community-language/",
                category="points",
            ),
        ),
    ),
    StageBlueprint(
        id="skills-assessment",
        title="Skills Assessment Submission",
        summary=(
            "Prepare your evidence and submit to the relevant assessing authority to prove your "
            "occupation suitability."
        ),
        duration_weeks=8,
        milestone="Skills assessment lodged with tracking spreadsheet updated.",
        applies=is_skilled_stream,
        tasks=(
            TaskBlueprint(
                id="skills-authority",
                title="Confirm the assessing authority criteria and document requirements",
                detail=(
                    "Read the latest guidelines (e.g. ACS, Engineers Australia, VETASSESS) and note "
                    "fees, turnaround, and validity."
                ),
                link=TaskLink(
                    label="Assessing authorities list",
                    href="https://immi.homeaffairs.gov.au/visas/working-in-australia/skill-occupation-list",
                ),
            ),
            TaskBlueprint(
                id="skills-cv-update",
                title="Update your CV into Australian standards",
                detail=(
                    "Use reverse chronological format, include responsibilities mapped to ANZSCO "
                    "duties, and convert grades to Australian equivalents."
                ),
            ),
            TaskBlueprint(
                id="skills-references",
                title="Gather employer references and statutory declarations",
                detail=(
                    "Ensure references outline duties, hours, salary, and tools/technologies. Arrange "
                    "statutory declarations where references are not available."
                ),
            ),
            TaskBlueprint(
                id="skills-qualifications",
                title="Certify academic transcripts and qualification certificates",
                detail=(
                    "Maintain high resolution scans with translator certification where documents "
                    "are not in English."
                ),
            ),
            TaskBlueprint(
                id="skills-submit",
                title="Lodge the assessment and track SLA",
                detail=(
                    "Record submission date, expected result, and follow-up contact details. Set "
                    "reminders for assessment expiry (usually 3 years)."
                ),
            ),
        ),
        resources=(
            Resource(
                title="ACS skills assessment",
                description="Detailed guidelines for ICT professionals applying through ACS.",
                href="https://www.acs.org.au/msa/international-student-applicants.html",
                category="skills",
            ),
            Resource(
                title="VETASSESS updates",
                description="Latest processing times and evidence checklists for general occupations.",
                href="https://www.vetassess.com.au/skills-assessment-for-migration",
                category="skills",
            ),
        ),
    ),
    StageBlueprint(
        id="state-nomination",
        title="State Nomination Readiness",
        summary=(
            "Tailor your expression of interest to the state or territory priorities and secure "
            "critical supporting evidence."
        ),
        duration_weeks=6,
        milestone="State documentation packaged and nomination submission ready.",
        applies=_state_nominated,
        tasks=(
            TaskBlueprint(
                id="state-shortlist",
                title="Shortlist states aligned to your occupation and situation",
                detail=(
                    "Compare current occupation lists, residency rules, job offer requirements, and "
                    "offshore/onshore status."
                ),
            ),
            TaskBlueprint(
                id="state-evidence",
                title="Compile state-specific evidence pack",
                detail=(
                    "Collect resume, job offers, settlement funds, commitment statements, and "
                    "additional forms required by the state."
                ),
            ),
            TaskBlueprint(
                id="state-expression",
                title="Draft your state commitment statement or ROI",
                detail=(
                    "Explain employment prospects, settlement plans, and why you will contribute to "
                    "the region long term."
                ),
            ),
            TaskBlueprint(
                id="state-monitor",
                title="Set monitoring alerts for state program windows",
                detail=(
                    "Subscribe to email alerts and create a weekly task to review announcements or "
                    "invitation rounds."
                ),
            ),
        ),
        resources=(
            Resource(
                title="NSW Skilled Nomination",
                description="Latest NSW occupation list and invitation process.",
                href="https://www.nsw.gov.au/visas-and-migration/skilled-visas",
                category="visa",
            ),
            Resource(
                title="SA ROI details",
                description="South Australia requirements with ROI process and priority segments.",
                href="https://www.migration.sa.gov.au/",
                category="visa",
            ),
        ),
    ),
    StageBlueprint(
        id="expression-of-interest",
        title="Expression of Interest & Invitations",
        summary=(
            "Ensure your SkillSelect profile is accurate, defensible, and ready to respond quickly "
            "to invitations."
        ),
        duration_weeks=3,
        milestone="SkillSelect EOI lodged with evidence cross-checked and monitoring cadence set.",
        applies=is_skilled_stream,
        tasks=(
            TaskBlueprint(
                id="eoi-profile",
                title="Draft and peer review your SkillSelect entry",
                detail="Ensure claimed points exactly match your evidence pack to avoid refusal for false claims.",
            ),
            TaskBlueprint(
                id="eoi-upload",
                title="Bundle supporting documents ready for upload",
                detail=(
                    "Combine PDFs into labelled files (e.g. Employment_CompanyA_2018-2022.pdf) for "
                    "faster response after invitation."
                ),
            ),
            TaskBlueprint(
                id="eoi-monitor",
                title="Set up invitation monitoring",
                detail=(
                    "Track SkillSelect invitation rounds and state draws. Update your SQL or "
                    "spreadsheet with lodged EOIs and expiry dates."
                ),
            ),
            TaskBlueprint(
                id="eoi-refresh",
                title="Refresh EOI after major life changes",
                detail=(
                    "Update English scores, employment length, partner skills, or birthday impacts "
                    "on points immediately."
                ),
            ),
        ),
        resources=(
            Resource(
                title="SkillSelect guide",
                description="Official SkillSelect walkthrough and invitation round data.",
                href=(
                    "https://immi.homeaffairs.gov.au/what-we-do/skilled-migration-program/"
                    "skilled-occupation-lists/invitation-rounds"
                ),
                category="points",
            ),
            Resource(
                title="EOI accuracy checklist",
                description="Ensure every SkillSelect claim is supported by evidence to avoid refusal.",
                href=(
                    "https://www.homeaffairs.gov.au/visas/working-in-australia/skillselect/"
                    "submitting-an-expression-of-interest"
                ),
                category="visa",
            ),
        ),
    ),
    StageBlueprint(
        id="partner-evidence",
        title="Partner Visa Evidence & Sponsorship",
        summary=(
            "Gather thorough relationship evidence, plan sponsorship obligations, and prepare the "
            "narrative for your application."
        ),
        duration_weeks=6,
        milestone="Relationship evidence indexed and sponsor obligations understood.",
        applies=_partner_involved,
        tasks=(
            TaskBlueprint(
                id="partner-form888",
                title="Coordinate Form 888 statutory declarations",
                detail=(
                    "Secure at least two Australian citizen or permanent resident referees who can "
                    "speak to the genuineness of your relationship."
                ),
                link=TaskLink(
                    label="Form 888 download",
                    href="https://immi.homeaffairs.gov.au/form-listing/forms/888.pdf",
                ),
            ),
            TaskBlueprint(
                id="partner-finances",
                title="Compile shared financial evidence",
                detail=(
                    "Bank statements, mortgages, leases, insurance, and ongoing financial commitments "
                    "showing shared responsibility."
                ),
            ),
            TaskBlueprint(
                id="partner-social",
                title="Document social and commitment evidence",
                detail=(
                    "Get photos, travel history, social media, and testimonials demonstrating the "
                    "relationship across time."
                ),
            ),
            TaskBlueprint(
                id="partner-sponsor",
                title="Prepare sponsor supporting documents",
                detail=(
                    "Police clearances, Form 40SP, sponsor obligations summary, and assurance of "
                    "support if required."
                ),
            ),
            TaskBlueprint(
                id="partner-statement",
                title="Write relationship statements (Applicant & Sponsor)",
                detail=(
                    "Cover how you met, development of relationship, financial and social aspects, "
                    "and future plans in Australia."
                ),
            ),
        ),
        resources=(
            Resource(
                title="Partner visa guide",
                description="Department explanation of partner visa streams, fees, and evidence.",
                href="https://immi.homeaffairs.gov.au/visas/getting-a-visa/visa-listing/partner-migrant",
                category="partner",
            ),
            Resource(
                title="Form 40SP details",
                description="Sponsorship obligations and supporting documentation for partners.",
                href="https://immi.homeaffairs.gov.au/form-listing/forms/40sp.pdf",
                category="partner",
            ),
        ),
    ),
    StageBlueprint(
        id="graduate-visa",
        title="Graduate Visa Preparation",
        summary=(
            "Secure your Australian study evidence, arrange health insurance, and prove "
            "employability for the 485 stream."
        ),
        duration_weeks=5,
        milestone="Australian study requirement satisfied and 485 checklist ready.",
        applies=lambda profile: profile.visa_stream == "graduate",
        tasks=(
            TaskBlueprint(
                id="graduate-completion",
                title="Collect completion letter and official transcripts",
                detail=(
                    "Ensure the letter confirms CRICOS course codes, start/end dates, and meets the "
                    "Australian study requirement."
                ),
            ),
            TaskBlueprint(
                id="graduate-health-cover",
                title="Arrange adequate health insurance (OVHC)",
                detail="Transition from OSHC to OVHC covering the entire anticipated visa period.",
            ),
            TaskBlueprint(
                id="graduate-employment",
                title="Prepare employment evidence for nominated occupation",
                detail=(
                    "Gather resumes, job references, or job offers aligned with the post-study "
                    "stream you are applying for."
                ),
            ),
            TaskBlueprint(
                id="graduate-afp",
                title="Apply for AFP national police check",
                detail=(
                    "Use code 33 for immigration. Ensure all names, including previous names, are "
                    "listed to avoid delays."
                ),
            ),
        ),
        resources=(
            Resource(
                title="485 visa checklist",
                description="Home Affairs document checklist for Temporary Graduate visa applicants.",
                href="https://immi.homeaffairs.gov.au/visas/web-evidentiary-tool",
                category="visa",
            ),
            Resource(
                title="Australian study requirement",
                description="Understand what counts towards the Australian study criterion.",
                href=(
                    "https://immi.homeaffairs.gov.au/help-support/tools/working-holiday-visa-tool/"
                    "australian-study-requirement"
                ),
                category="visa",
            ),
        ),
    ),
    StageBlueprint(
        id="visa-lodgement",
        title="Visa Lodgement & Compliance",
        summary=(
            "Prepare health, character, and financial evidence so you can lodge confidently and "
            "respond quickly to case officer requests."
        ),
        duration_weeks=4,
        milestone="Visa lodged with full document bundle uploaded and acknowledgements received.",
        applies=_always,
        tasks=(
            TaskBlueprint(
                id="visa-health",
                title="Book panel physician health examinations",
                detail=(
                    "Use My Health Declarations or arrange after receiving HAP ID. Factor in "
                    "processing time for results uploading."
                ),
                link=TaskLink(
                    label="Panel physician finder",
                    href="https://immi.homeaffairs.gov.au/help-support/contact-us/offices-and-locations/list",
                ),
            ),
            TaskBlueprint(
                id="visa-police",
                title="Order police certificates for each country lived in 12+ months",
                detail=(
                    "Check validity periods (usually 12 months) and translations. Upload once lodged "
                    "as case officers often request quickly."
                ),
            ),
            TaskBlueprint(
                id="visa-proof-funds",
                title="Prepare financial capacity evidence",
                detail=(
                    "Provide bank statements, savings, and support letters demonstrating settlement "
                    "funds or ongoing financial support."
                ),
                applies=lambda profile: profile.visa_stream in ("190", "491", "partner"),
            ),
            TaskBlueprint(
                id="visa-upload",
                title="Upload documents with clear naming conventions",
                detail=(
                    "Match names to EOI claims or relationship categories. Double-check file size "
                    "limits and PDF legibility."
                ),
            ),
            TaskBlueprint(
                id="visa-followup",
                title="Create a response plan for case officer requests",
                detail=(
                    "Draft templated replies, set SLA expectations, and ensure work/study travel "
                    "plans allow quick turnaround."
                ),
            ),
        ),
        resources=(
            Resource(
                title="Health examinations",
                description="Understand when to complete health checks and how HAP IDs work.",
                href="https://immi.homeaffairs.gov.au/help-support/meeting-our-requirements/health",
                category="visa",
            ),
            Resource(
                title="Character requirements",
                description="Official list of character and police check requirements for visa applicants.",
                href="https://immi.homeaffairs.gov.au/help-support/meeting-our-requirements/character",
                category="visa",
            ),
        ),
    ),
    StageBlueprint(
        id="settlement",
        title="Arrival & Settlement Game Plan",
        summary=(
            "Prepare the practical steps for relocating, including housing, job search, schooling, "
            "and community integration."
        ),
        duration_weeks=6,
        milestone="Landing plan defined with budgets, school research, and first 90 days checklist.",
        applies=_always,
        tasks=(
            TaskBlueprint(
                id="settlement-budget",
                title="Build a landing budget covering the first 6 months",
                detail=(
                    "Include temporary accommodation, rental bond, furniture, school costs, and "
                    "buffer for job search."
                ),
            ),
            TaskBlueprint(
                id="settlement-employment",
                title="Craft an Australian-style resume and LinkedIn profile",
                detail=(
                    "Highlight measurable achievements, localise terminology, and line up referees "
                    "reachable during Australian hours."
                ),
            ),
            TaskBlueprint(
                id="settlement-schooling",
                title="Research schooling or childcare options",
                detail=(
                    "Understand enrolment zones, documentation requirements, and fees. Plan bridging "
                    "childcare if awaiting places."
                ),
                applies=lambda profile: profile.has_children,
            ),
            TaskBlueprint(
                id="settlement-arrival-kit",
                title="Create an arrival action list for the first fortnight",
                detail=(
                    "Medicare enrolment, TFN, bank account, driver licence transfer, SIM cards, and "
                    "local transport cards."
                ),
            ),
            TaskBlueprint(
                id="settlement-community",
                title="Identify professional and community networks",
                detail=(
                    "Join state-based migrant groups, industry associations, and mentorship programs "
                    "before arrival."
                ),
            ),
        ),
        resources=(
            Resource(
                title="Life in Australia booklet",
                description="Official guide covering values, culture, and settlement services.",
                href="https://immi.homeaffairs.gov.au/settling-in-australia/living-in-australia",
                category="settlement",
            ),
            Resource(
                title="Job search toolkit",
                description="Practical template for mapping employers, recruiters, and job boards.",
                href="https://www.jobs.gov.au/migrants",
                category="settlement",
            ),
        ),
    ),
)


def validate_catalogue(catalogue: Iterable[StageBlueprint]) -> None:
    """Raise ValueError when stage ids or task ids are reused."""
    stage_ids: Set[str] = set()
    task_ids: Set[str] = set()
    for stage in catalogue:
        if stage.id in stage_ids:
            raise ValueError(f"Duplicate stage id in catalogue: {stage.id}")
        stage_ids.add(stage.id)
        if stage.duration_weeks < 1:
            raise ValueError(f"Stage {stage.id} must last at least one week.")
        for task in stage.tasks:
            if task.id in task_ids:
                raise ValueError(f"Duplicate task id in catalogue: {task.id}")
            task_ids.add(task.id)


def catalogue_task_ids(catalogue: Iterable[StageBlueprint] = STAGE_BLUEPRINTS) -> Set[str]:
    return {task.id for stage in catalogue for task in stage.tasks}


def find_task(task_id: str, catalogue: Iterable[StageBlueprint] = STAGE_BLUEPRINTS) -> Optional[TaskBlueprint]:
    for stage in catalogue:
        for task in stage.tasks:
            if task.id == task_id:
                return task
    return None


validate_catalogue(STAGE_BLUEPRINTS)

__all__ = [
    "ENGLISH_TEST_LABELS",
    "PACE_LABELS",
    "REGION_LABELS",
    "Resource",
    "STAGE_BLUEPRINTS",
    "StageBlueprint",
    "TaskBlueprint",
    "TaskLink",
    "VISA_STREAM_LABELS",
    "catalogue_task_ids",
    "find_task",
    "validate_catalogue",
]
