"""Constants for AnalysisVerdict wire field names"""


class VerdictFields:
    """Field name constants for the AnalysisVerdict JSON shape"""
    IS_DROWSY = "isDrowsy"
    REASON = "reason"
    CONFIDENCE = "confidence"
    DETECTED_SIGNS = "detectedSigns"
