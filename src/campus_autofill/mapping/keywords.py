"""Static lookup tables used to recognize profile attributes in form text."""

from types import MappingProxyType
from typing import Dict, Mapping, Tuple

# Canonical key -> phrase variants, in the order they should be tried.
# Keys earlier in the table win when two phrases appear in the same label,
# so specific keys (alternate phone, HSC/SSC details) sit before generic ones.
_KEYWORD_TABLE: Dict[str, Tuple[str, ...]] = {
    # Basic personal info
    "firstName": ("first name", "given name", "candidate name", "your name", "forename"),
    "middleName": ("middle name", "father name", "fathers name"),
    "lastName": ("last name", "surname", "family name"),
    "fullName": ("full name", "name of the student", "student name", "name of the candidate", "name as per"),
    "alternatePhone": ("alternate phone", "alternate mobile", "alternate contact", "secondary contact", "parents contact"),
    "emailID": ("email", "e-mail", "email address", "e-mail id", "personal email", "mail id"),
    "phone": ("phone number", "mobile number", "contact number", "whatsapp number", "tel number", "mobile no", "contact no"),
    "gender": ("gender", "sex"),
    "dob": ("date of birth", "dob", "birth date", "birthdate"),
    "rknecID": ("rknec id", "college id", "student id"),
    "currentAddress": ("current address", "local address", "correspondence address"),
    "permanentAddress": ("permanent address", "home address", "native address"),

    # HSC (12th) details
    "hscSchoolName": ("hsc school name", "12th school name", "hsc college name", "12th college name"),
    "hscBoard": ("hsc board", "12th board"),
    "hscYearOfPassing": ("hsc year of passing", "12th year of passing", "hsc passing year", "12th passing year"),
    "hscPercentage": ("hsc percentage", "12th percentage", "12th marks", "hsc marks", "intermediate marks"),

    # SSC (10th) details
    "sscSchoolName": ("ssc school name", "10th school name"),
    "sscBoard": ("ssc board", "10th board"),
    "sscYearOfPassing": ("ssc year of passing", "10th year of passing", "ssc passing year", "10th passing year"),
    "sscPercentage": ("ssc percentage", "10th percentage", "10th marks", "ssc marks", "high school marks"),

    # Academic info
    "cgpa": ("cgpa", "c.g.p.a.", "cumulative grade point average", "current cgpa", "aggregate cgpa"),
    "activeBacklogs": ("active backlogs", "pending backlogs", "current backlogs", "live backlogs"),
    "deadBacklogs": ("dead backlogs", "cleared backlogs", "total backlogs", "backlog history"),
    "yearOfGraduation": ("graduation year", "year of graduation", "year of passing", "expected graduation", "passing out year", "batch"),
    "collegeYear": ("college year", "current year", "year of study", "academic year"),
    "branch": ("branch", "department", "discipline", "major", "stream"),
    "enrollmentNumber": ("enrollment number", "enrolment number", "roll number", "registration number", "prn"),

    # Documents
    "resume": ("resume", "cv upload", "upload your resume", "upload cv", "resume file", "curriculum vitae", "resume link"),
}

KEYWORD_TABLE: Mapping[str, Tuple[str, ...]] = MappingProxyType(_KEYWORD_TABLE)

# Normalized machine-oriented tokens (input name/id attributes, short labels)
# that identify a key without any fuzzy matching.
_ALIAS_TABLE: Dict[str, str] = {
    "fname": "firstName",
    "givenname": "firstName",
    "mname": "middleName",
    "fathername": "middleName",
    "lname": "lastName",
    "familyname": "lastName",
    "emailid": "emailID",
    "emailaddress": "emailID",
    "rknecemail": "emailID",
    "mobileno": "phone",
    "mobilenumber": "phone",
    "phoneno": "phone",
    "phonenumber": "phone",
    "contactno": "phone",
    "altphone": "alternatePhone",
    "altmobile": "alternatePhone",
    "alternatemobile": "alternatePhone",
    "alternatenumber": "alternatePhone",
    "alternatecontact": "alternatePhone",
    "birthdate": "dob",
    "dateofbirth": "dob",
    "rollno": "enrollmentNumber",
    "rollnumber": "enrollmentNumber",
    "enrollmentno": "enrollmentNumber",
    "prn": "enrollmentNumber",
    "cv": "resume",
}

ALIAS_TABLE: Mapping[str, str] = MappingProxyType(_ALIAS_TABLE)

# Labels that name a key only when they are the whole question text. A bare
# "Name" asks for the full name, but "name" inside a longer label does not.
_LABEL_TABLE: Dict[str, str] = {
    "name": "fullName",
    "student": "fullName",
    "candidate": "fullName",
}

LABEL_TABLE: Mapping[str, str] = MappingProxyType(_LABEL_TABLE)

# Abbreviations users store in profiles that forms spell out in options.
_CHOICE_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "cs": ("computer science",),
    "cse": ("computer science and engineering", "computer science", "computer engineering"),
    "it": ("information technology",),
    "ece": ("electronics and communication", "electronics and communication engineering"),
    "etc": ("electronics and telecommunication", "electronics and telecommunication engineering"),
    "entc": ("electronics and telecommunication",),
    "ee": ("electrical engineering", "electrical"),
    "eee": ("electrical and electronics engineering",),
    "mech": ("mechanical", "mechanical engineering"),
    "me": ("mechanical engineering",),
    "civ": ("civil", "civil engineering"),
    "aiml": ("artificial intelligence and machine learning",),
    "ds": ("data science",),
    "m": ("male",),
    "f": ("female",),
    "y": ("yes",),
    "n": ("no",),
}

CHOICE_SYNONYMS: Mapping[str, Tuple[str, ...]] = MappingProxyType(_CHOICE_SYNONYMS)

# Tokens too generic to prove that two texts are about the same thing.
STOPWORDS = frozenset({
    "a", "an", "and", "any", "are", "as", "at", "by", "details", "do",
    "does", "enter", "for", "have", "id", "in", "is", "it", "mention",
    "name", "no", "number", "of", "on", "or", "please", "provide", "select",
    "the", "to", "what", "which", "with", "you", "your",
})

# Stopwords that still tell keys apart inside a label ("college name" is not
# "college id").
IDENTIFYING_WORDS = frozenset({"id", "name", "no", "number"})

# Keys whose values are dates.
DATE_KEYS = frozenset({"dob"})

# Keys that can be derived from a combined full-name value.
NAME_PART_KEYS = ("firstName", "middleName", "lastName")
