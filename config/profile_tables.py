"""Default profile engine tables.

Builder tables say where each profile field comes from; validator tables say
how stored attributes are cross-checked. Deployments can override all of them
with a JSON directory (see ENGINE_CONFIG_DIR).
"""

# Profile field -> candidate doc types, highest priority first
FIELD_SOURCES = {
    "firstName": ["aadhaar", "marksheet"],
    "middleName": ["aadhaar", "marksheet"],
    "lastName": ["aadhaar", "marksheet"],
    "fatherName": ["aadhaar", "marksheet"],
    "gender": ["aadhaar"],
    "dob": ["aadhaar", "marksheet", "birthCertificate"],
    "caste": ["casteCertificate"],
    "aadhaar": ["aadhaar"],
    "annualIncome": ["incomeCertificate"],
    "class": ["enrollmentCertificate", "marksheet"],
    "studentType": ["enrollmentCertificate"],
    "previousYearMarks": ["marksheet"],
    "state": ["domicileCertificate", "aadhaar"],
    "udid": ["disabilityCertificate"],
    "disabilityType": ["disabilityCertificate"],
    "disabilityRange": ["disabilityCertificate"],
    "bankAccountHolderName": ["bankAccountDetails"],
    "bankAccountNumber": ["bankAccountDetails"],
    "bankIfscCode": ["bankAccountDetails"],
    "bankName": ["bankAccountDetails"],
    "bankAddress": ["bankAccountDetails"],
    "branchCode": ["bankAccountDetails"],
    "nspOtr": ["otrCertificate"],
    "tuitionAndAdminFeePaid": ["feeReceipt"],
    "miscFeePaid": ["feeReceipt"],
    "currentSchoolName": ["enrollmentCertificate", "marksheet"],
}

# Doc type -> profile field -> dotted path inside the VC content
FIELD_PATHS = {
    "aadhaar": {
        "name": "credentialSubject.name",
        "gender": "credentialSubject.gender",
        "dob": "credentialSubject.dob",
        "aadhaar": "credentialSubject.uid",
        "state": "credentialSubject.address.state",
    },
    "marksheet": {
        "name": "credentialSubject.studentName",
        "dob": "credentialSubject.dateOfBirth",
        "class": "credentialSubject.class",
        "previousYearMarks": "credentialSubject.percentage",
        "currentSchoolName": "credentialSubject.schoolName",
    },
    "birthCertificate": {
        "name": "credentialSubject.childName",
        "dob": "credentialSubject.dateOfBirth",
    },
    "casteCertificate": {
        "name": "credentialSubject.name",
        "caste": "credentialSubject.caste",
    },
    "incomeCertificate": {
        "name": "credentialSubject.name",
        "annualIncome": "credentialSubject.annualIncome",
    },
    "enrollmentCertificate": {
        "class": "credentialSubject.grade",
        "studentType": "credentialSubject.studentType",
        "currentSchoolName": "credentialSubject.institutionName",
    },
    "domicileCertificate": {
        "state": "credentialSubject.state",
    },
    "disabilityCertificate": {
        "udid": "credentialSubject.udid",
        "disabilityType": "credentialSubject.disabilityType",
        "disabilityRange": "credentialSubject.disabilityPercentage",
    },
    "bankAccountDetails": {
        "bankAccountHolderName": "credentialSubject.accountHolderName",
        "bankAccountNumber": "credentialSubject.accountNumber",
        "bankIfscCode": "credentialSubject.ifscCode",
        "bankName": "credentialSubject.bankName",
        "bankAddress": "credentialSubject.bankAddress",
        "branchCode": "credentialSubject.branchCode",
    },
    "otrCertificate": {
        "nspOtr": "credentialSubject.otrNumber",
    },
    "feeReceipt": {
        "tuitionAndAdminFeePaid": "credentialSubject.tuitionAndAdminFee",
        "miscFeePaid": "credentialSubject.miscellaneousFee",
    },
}

# Profile field -> registered transform name
FIELD_TRANSFORMS = {
    "firstName": "first_name",
    "middleName": "middle_name",
    "lastName": "last_name",
    "fatherName": "father_name",
    "gender": "gender",
    "class": "class",
    "disabilityType": "disability_type",
    "dob": "date",
    "annualIncome": "income",
}

# Stored attribute -> doc types that may verify it
ATTRIBUTE_SOURCES = {
    "firstName": ["aadhaar", "marksheet"],
    "middleName": ["aadhaar", "marksheet"],
    "lastName": ["aadhaar", "marksheet"],
    "gender": ["aadhaar"],
    "dob": ["aadhaar", "marksheet"],
    "income": ["incomeCertificate"],
    "caste": ["casteCertificate"],
}

# Doc type -> path variants per (vcType, format)
ATTRIBUTE_PATHS = {
    "aadhaar": [
        {
            "vcType": "digilocker",
            "format": "json",
            "fields": {
                "name": "Certificate.IssuedTo.Person.name",
                "gender": "Certificate.IssuedTo.Person.gender",
                "dob": "Certificate.IssuedTo.Person.dob",
            },
        },
        {
            "vcType": "w3c",
            "format": "json",
            "fields": {
                "name": "credentialSubject.name",
                "firstName": "credentialSubject.firstName",
                "middleName": "credentialSubject.middleName",
                "lastName": "credentialSubject.lastName",
                "gender": "credentialSubject.gender",
                "dob": "credentialSubject.dob",
            },
        },
    ],
    "marksheet": [
        {
            "vcType": "digilocker",
            "format": "json",
            "fields": {
                "name": "Certificate.IssuedTo.Person.name",
                "dob": "Certificate.IssuedTo.Person.dob",
            },
        },
        {
            "vcType": "w3c",
            "format": "json",
            "fields": {
                "firstName": "credentialSubject.firstName",
                "middleName": "credentialSubject.middleName",
                "lastName": "credentialSubject.lastName",
                "dob": "credentialSubject.dateOfBirth",
            },
        },
    ],
    "incomeCertificate": [
        {
            "vcType": "digilocker",
            "format": "json",
            "fields": {"income": "Certificate.CertificateData.Income.annualIncome"},
        },
        {
            "vcType": "w3c",
            "format": "json",
            "fields": {"income": "credentialSubject.annualIncome"},
        },
    ],
    "casteCertificate": [
        {
            "vcType": "digilocker",
            "format": "json",
            "fields": {"caste": "Certificate.CertificateData.Caste.category"},
        },
        {
            "vcType": "w3c",
            "format": "json",
            "fields": {"caste": "credentialSubject.caste"},
        },
    ],
}

# Stored value (lowercase) -> accepted raw synonyms (lowercase)
CATEGORICAL_VALUES = {
    "gender": {
        "male": ["m", "male"],
        "female": ["f", "female"],
        "transgender": ["t", "transgender", "other"],
    },
    "caste": {
        "sc": ["sc", "scheduled caste"],
        "st": ["st", "scheduled tribe"],
        "obc": ["obc", "other backward class", "other backward classes"],
        "general": ["general", "gen", "open"],
    },
}

# Doc type -> name attribute -> token index in the composite name
NAME_POSITIONS = {
    "aadhaar": {"firstName": 0, "middleName": 1, "lastName": 2},
    "marksheet": {"firstName": 0, "middleName": 1, "lastName": 2},
}
