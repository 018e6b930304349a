"""
Built-in defaults per degree program: program outcomes, seed SLOs and
boilerplate policy text.

Unknown or empty program codes fall back to the BSN tables.
"""

from typing import Dict, List, Optional

from sylman.schemas.syllabus import ProgramCode

DEFAULT_PROGRAM = ProgramCode.BSN

POLICY_KEYS: List[str] = [
    "generalPolicies",
    "courseMinimumGrade",
    "lateMakeupWork",
    "attendance",
    "incomplete",
    "withdrawal",
    "academicRights",
    "academicIntegrity",
    "netiquette",
    "diversityInclusion",
    "chosenName",
    "religiousObservance",
    "academicSupport",
    "disabilityDisclosure",
    "informationTechnologies",
    "counselingServices",
    "titleIX",
    "continuityInstruction",
]

# Placeholders for courseType / placement after a program is chosen
FIELD_PLACEHOLDERS: Dict[str, Dict[str, str]] = {
    "BSN": {"courseType": "Lecture, studio, or other (for BSN)", "placement": "Year #, Semester # (for BSN)"},
    "MSN": {"courseType": "Lecture, lab, or seminar (for MSN)", "placement": "Year #, Semester # (for MSN)"},
    "DNP": {"courseType": "Hybrid, online, or seminar (for DNP)", "placement": "Year #, Semester # (for DNP)"},
    "default": {"courseType": "Lecture, studio, lab, seminar, or other", "placement": "Year #, Semester #"},
}

PROGRAM_OUTCOMES: Dict[str, List[str]] = {
    "BSN": [
        "Apply knowledge and principles from the arts, sciences, and humanities to the developmental, psychosocial, spiritual, and physical care of individuals, families, communities, and populations. (Essential I)",
        "Integrate knowledge and skills in leadership, quality and patient safety into the provision of nursing care to individuals, families, communities, and populations across the care continuum. (Essential II)",
        "Incorporate reflection, critical appraisal, clinical reasoning, and current best evidence into the delivery of care to individuals, families, communities, and populations. (Essential III)",
        "Utilize information management and emerging healthcare technologies in the delivery of quality nursing care. (Essentials II, IV)",
        "Recognize the influence healthcare policies, including financial, legal and regulatory, have on health system functioning and the broader determinants of health. (Essential V)",
        "Utilize open communication, shared-decision making, creative problem solving, and mutual respect when collaborating with nursing and interprofessional teams. (Essential VI)",
        "Incorporate strategies of health promotion and disease prevention in addressing health outcomes and determinants in communities and populations. (Essential VII)",
        "Demonstrate professionalism and the values of altruism, autonomy, human dignity, integrity, and social justice in the nursing care of individuals, families, communities and populations. (Essentials VIII, IX)",
    ],
    "MSN": [
        "Integrate relevant knowledge, principles and theories from nursing and related sciences into the advanced nursing care of individuals, families and populations. (Essential I)",
        "Demonstrate acumen in organizational leadership through effective collaboration, consultation, and decision-making. (Essential II)",
        "Integrate research translation and evidence appraisal into advanced nursing practice to initiate change and improve quality outcomes. (Essential IV)",
        "Evaluate information science approaches and patient-centric technologies to improve health outcomes and enhance quality of care. (Essentials III, V)",
        "Analyze the impact policies, economic factors, and ethical and socio-cultural dimensions have on advanced nursing practice and health care outcomes. (Essential VI)",
        "Integrate the concepts of interprofessional communication, collaboration and consultation to effectively manage and coordinate care across systems. (Essential VII)",
        "Incorporate culturally-appropriate concepts in the planning and delivery of evidence-based preventive and clinical care to communities, and populations. (Essential VIII)",
        "Demonstrate expertise in a defined area of advanced practice nursing that influences health care outcomes for individuals, populations and systems. (Essential IX)",
    ],
    "DNP": [
        "Synthesize knowledge from ethics and the biophysical, psychosocial, analytical, and organizational sciences into the conceptual foundation of advanced nursing practice at the doctoral level. (Essential I)",
        "Employ organizational and systems-level leadership principles in the development and evaluation of care delivery approaches that meet the current and future needs of communities and populations. (Essential II)",
        "Design, direct and evaluate scholarly inquiries that incorporate evidence appraisal, research translation, and standards of care to improve practice and the practice environment. (Essential III)",
        "Analyze ethical and legal issues in the use of information, information technology, communication networks, and patient care technologies used to support safe, high-quality patient care. (Essentials II, IV)",
        "Influence policy makers through active participation on committees, boards, or task forces at the institutional, local, state, regional, national, and/or international levels to improve health care delivery and outcomes. (Essential V)",
        "Integrate skills of effective communication, collaboration, shared decision-making, and leadership with interprofessional teams to create change in health care. (Essential VI)",
        "Synthesize individual, aggregate, and population health data in the development, implementation, and evaluation of interventions that address health promotion/disease prevention, access, and disparities. (Essential VII)",
        "Demonstrate advanced levels of leadership, systems thinking, clinical judgement, and analytical skills in designing, delivering, and evaluating evidence-based care at the highest level of advanced practice. (Essential VIII)",
    ],
}

SLO_MAPPING: Dict[str, Dict[str, List[str]]] = {
    "BSN": {
        "1": [
            "Demonstrate an understanding of the developmental, psychosocial, and physical care principles in patient scenarios.",
            "Analyze case studies to apply principles of the arts, sciences, and humanities in nursing care.",
        ],
        "2": [
            "Apply leadership and quality improvement concepts in simulated care environments.",
            "Critique quality and safety initiatives in clinical practice.",
        ],
        "3": [
            "Utilize critical thinking and evidence-based practices to solve complex nursing problems.",
            "Reflect on nursing practice to identify areas for improvement.",
        ],
        "4": [
            "Demonstrate proficiency in the use of healthcare technologies during patient care simulations.",
            "Evaluate the effectiveness of information systems in improving care delivery.",
        ],
        "5": [
            "Assess the impact of healthcare policies on patient care and outcomes.",
            "Advocate for legal and regulatory improvements in healthcare systems.",
        ],
        "6": [
            "Effectively collaborate with interdisciplinary teams in case management scenarios.",
            "Apply principles of shared decision-making in patient care plans.",
        ],
        "7": [
            "Design health promotion strategies for diverse populations.",
            "Implement disease prevention programs tailored to community needs.",
        ],
        "8": [
            "Exemplify professionalism and integrity in simulated patient care.",
            "Advocate for social justice and autonomy in community health settings.",
        ],
    },
    "MSN": {
        "1": [
            "Integrate advanced nursing theories in complex care delivery models.",
            "Analyze the application of principles from nursing and related sciences in patient care.",
        ],
        "2": [
            "Demonstrate effective decision-making in interprofessional leadership roles.",
            "Evaluate organizational strategies to improve care quality.",
        ],
        "3": [
            "Critique research articles to support evidence-based nursing practices.",
            "Implement evidence-based changes to improve quality outcomes.",
        ],
        "4": [
            "Evaluate patient-centric technologies for their impact on health outcomes.",
            "Apply information science approaches to improve healthcare delivery.",
        ],
        "5": [
            "Analyze the effects of policies and economic factors on patient care outcomes.",
            "Advocate for ethical decision-making in advanced nursing practices.",
        ],
        "6": [
            "Demonstrate interprofessional communication skills in managing patient care.",
            "Collaborate with healthcare teams to coordinate care across systems.",
        ],
        "7": [
            "Incorporate cultural competence in the development of community health interventions.",
            "Evaluate population health strategies for their effectiveness in preventive care.",
        ],
        "8": [
            "Develop expertise in a specialized area of advanced nursing practice.",
            "Influence health outcomes through advanced clinical decision-making.",
        ],
    },
    "DNP": {
        "1": [
            "Synthesize knowledge from multiple sciences into advanced nursing practice scenarios.",
            "Demonstrate ethical decision-making in clinical practice.",
        ],
        "2": [
            "Apply leadership principles to redesign care delivery models.",
            "Evaluate systems-level interventions to meet population health needs.",
        ],
        "3": [
            "Design evidence-based interventions for improving clinical practice environments.",
            "Implement scholarly inquiries to evaluate healthcare practices.",
        ],
        "4": [
            "Analyze the ethical use of healthcare technologies in patient care.",
            "Evaluate legal considerations in information technology use.",
        ],
        "5": [
            "Participate in policy advocacy to improve healthcare delivery.",
            "Demonstrate leadership on boards or committees to influence healthcare policies.",
        ],
        "6": [
            "Collaborate with interprofessional teams to achieve healthcare change.",
            "Apply communication and decision-making skills to lead care initiatives.",
        ],
        "7": [
            "Develop population health programs addressing health disparities.",
            "Implement interventions to promote health and prevent disease.",
        ],
        "8": [
            "Exhibit advanced clinical judgment in designing evidence-based care plans.",
            "Evaluate healthcare systems for effectiveness in delivering high-level care.",
        ],
    },
}

_SHARED_POLICIES: Dict[str, str] = {
    "lateMakeupWork": "For the Jefferson College of Nursing policy on late and make-up work, please see the Guidelines for Written Course Assignments section of the Jefferson College of Nursing Student Handbook & Course Catalog.",
    "attendance": "Attendance is expected in all classes for which a student is registered. Faculty, in conjunction with the academic program/department, determines attendance requirements for each course. Please see the Thomas Jefferson University Attendance policy and the Jefferson College of Nursing Student Handbook & Course Catalog for information regarding class, laboratory, and clinical attendance.\n\nStudents who have any symptoms that are associated with infectious diseases (e.g., cold, flu, or viral infection) should not attend in-person classes, clinical experiences, or other activities that put them in close contact with other students, faculty, staff, or patients. These symptoms can include but are not limited to sneezing, coughing, fever, gastrointestinal pain, and diarrhea. Students with these symptoms should contact Student Health Services (East Falls campus) or Jefferson Occupational Health Network (JOHN) (Center City campus) if these symptoms are present before participating in any classroom, clinical, lab, or studio sessions, or any activities in which other students, faculty, staff, or patients are present. Students who have these symptoms are responsible for notifying their instructors, program, or college using the usual mechanisms before missing any scheduled course/clinical education activity, for staying current with course/clinical requirements, and for complying with any other course/clinical attendance policies. Students may be asked to provide documentation that they are under the care of a medical provider (without disclosure of any medical condition).",
    "incomplete": "Please refer to the Failure to Complete a Course and the Grading System policies in the Jefferson College of Nursing Student Handbook & Course Catalog.",
    "withdrawal": "Please see the Course Withdrawal policy in the Jefferson College of Nursing Student Handbook & Course Catalog.\nFor withdrawal deadlines, please refer to the appropriate Academic Calendar.",
    "academicRights": "The Academic Responsibility Contract in the Jefferson College of Nursing Student Handbook & Course Catalog contains information about Jefferson College of Nursing students’ academic rights and responsibilities.\nFor more information about students’ rights and responsibilities, please refer to the Thomas Jefferson University Rights and Responsibilities page.",
    "academicIntegrity": "Academic Integrity is the foundation of all Jefferson teaching, learning, and professional endeavors and is vital to advancing a culture of fairness, trust, and respect. All members of the University community must maintain respect for the intellectual efforts of others and be honest in their own work, words, and ideas.\nFor more information, please see the Thomas Jefferson University Academic Integrity policy and Academic Integrity policy in the Jefferson College of Nursing Student Handbook & Course Catalog.",
    "netiquette": "Faculty and fellow students wish to foster a safe online learning environment consistent with Thomas Jefferson University’s Community Standards. In keeping with Thomas Jefferson University’s Commitment to Diversity, all opinions and experiences, no matter how different or controversial they may be perceived, must be respected in the tolerant spirit of academic discourse. Students are encouraged to comment, question, or critique an idea but are not to attack an individual.\n\nOur differences will add richness to this learning experience. Please consider that sarcasm and humor can be misconstrued in online interactions and generate unintended disruptions. Working as a community of learners, we can build a polite and respectful course atmosphere.",
    "diversityInclusion": "Jefferson holds itself accountable at every level of the organization to nurture an environment of inclusion and respect by valuing the uniqueness of every individual, celebrating and reflecting the rich diversity of its communities, and taking meaningful action to cultivate an environment of fairness, belonging, and opportunity.\nAll students are enrolled in the Diversity & Inclusion at TJU canvas course, which will provide access to resources and current events sponsored by the Office of Diversity Inclusion and Community Engagement.\nThe Diversity Inclusion & Community Engagement page:\nhttps://diversity.jefferson.edu/",
    "chosenName": "Some members of our community use a name, gender, and pronoun other than their legal identifiers. Students are free to elect to have their chosen first name, gender identity, and chosen pronoun appear in Thomas Jefferson University’s system.\nhttps://www.jefferson.edu/life-at-jefferson/handbooks/policies/graduate-policies/chosen-name.html",
    "religiousObservance": "The University understands that some students may wish to observe religious holidays that fall on scheduled class days.\nhttps://www.jefferson.edu/life-at-jefferson/handbooks/policies/graduate-policies/student-religious-observance-policy.html",
    "academicSupport": "Student academic support sessions are facilitated by Jefferson College of Nursing faculty members, available on an individual basis or as a group and open to all students wishing to seek additional academic support at any point during the course of study. The student academic support sessions are in addition to academic advising.",
    "disabilityDisclosure": "Accessibility Services complies with Section 504 and the ADA, providing reasonable accommodations to students who are eligible for such services. In post-secondary education, the student has the right to request accommodations and must be proactive and initiate the process. Disclosure of a student’s disability is voluntary and at the discretion of the student. Documentation concerning disabilities is separate from the student’s general academic file. Please contact the Office of Student Accessibility Services at:\n\nEast Falls Campus:  https://www.jefferson.edu/east-falls/student-accessibility-services.html\nCenter City/Dixon Campus:  https://www.jefferson.edu/life-at-jefferson/student-resources-services/academics-career-success/accessibility-services.html\n\nSee the University policy on Disability Accommodations for more information.",
    "informationTechnologies": "Analysts in Jefferson’s Information Systems and Technologies (IS&T) team are available to answer your technology questions or issues.\n\nCenter City/Dixon: 215-955-7975\nhttps://library.jefferson.edu/tech/\n\nEast Falls: 215-951-4648 Search Hall, first floor\nhttp://eastfalls.jefferson.edu/OIR/TechnologyHelpDesk.html",
    "counselingServices": "The Student Counseling Center provides assistance in addressing personal challenges that interfere with academic progress and growth.\n\nCenter City/Dixon: 33 S. Ninth Street, Suite 230, 215-503-2817\nContact: https://www.jefferson.edu/life-at-jefferson/health-wellness/counseling-center/contact.html\nServices: https://www.jefferson.edu/life-at-jefferson/health-wellness/counseling-center/our-services.html\nCrisis Resources: https://www.jefferson.edu/life-at-jefferson/health-wellness/counseling-center/crisis-resources.html\n\nEast Falls: Kanbar Campus Center, 215-951-2868\nhttp://www.eastfalls.jefferson.edu/counseling/",
    "titleIX": "The University’s Sex and Gender-Based Misconduct Policy sets forth Jefferson’s commitment to foster an environment free of discrimination, including sexual harassment and sexual violence.\nhttps://www.jefferson.edu/university/academic-affairs/schools/student-affairs/sexual-misconduct.html",
    "continuityInstruction": "For information about continuity of instruction in the event of an emergency, please reference the Thomas Jefferson University Inclement Weather policy and the Continuity of Instruction in Event of Emergency policy in the Jefferson College of Nursing Student Handbook & Course Catalog.",
}

_GENERAL_POLICY = (
    "This course will abide by all Jefferson College of Nursing and Thomas Jefferson University policies. "
    "Students are responsible for knowing and adhering to University policies "
    "(https://www.jefferson.edu/academicpolicies) and policies as outlined in the Jefferson College of "
    "Nursing Student Handbook & Course Catalog."
)

_MINIMUM_GRADE_POLICY = (
    "A minimum grade of B- (80) is required in all {program} program courses in order to progress in the "
    "curriculum. Per program policy, only final grades will be rounded to the nearest whole number. Exam and "
    "quiz scores will not be rounded and will be entered in grade book in Canvas to the nearest hundredth of "
    "a percent.\nFor more information, please see the Academic Progression policy in the Jefferson College "
    "of Nursing Student Handbook & Course Catalog."
)


def _program_policies(program: ProgramCode) -> Dict[str, str]:
    policies = {
        "generalPolicies": _GENERAL_POLICY,
        "courseMinimumGrade": _MINIMUM_GRADE_POLICY.format(program=program.value),
    }
    policies.update(_SHARED_POLICIES)
    return {key: policies[key] for key in POLICY_KEYS}


DEFAULT_POLICIES: Dict[str, Dict[str, str]] = {
    program.value: _program_policies(program) for program in ProgramCode
}


def resolve_program(program: Optional[str]) -> str:
    """Return a known program code, falling back to the default program."""
    if program in DEFAULT_POLICIES:
        return program
    return DEFAULT_PROGRAM.value


def is_known_program(program: Optional[str]) -> bool:
    return program in DEFAULT_POLICIES


def get_program_outcomes(program: Optional[str]) -> List[str]:
    return list(PROGRAM_OUTCOMES[resolve_program(program)])


def get_default_slo_mapping(program: Optional[str]) -> Dict[str, List[str]]:
    return {key: list(values) for key, values in SLO_MAPPING[resolve_program(program)].items()}


def get_default_policies(program: Optional[str]) -> Dict[str, str]:
    return dict(DEFAULT_POLICIES[resolve_program(program)])


def get_field_placeholders(program: Optional[str]) -> Dict[str, str]:
    return dict(FIELD_PLACEHOLDERS.get(program or "", FIELD_PLACEHOLDERS["default"]))
