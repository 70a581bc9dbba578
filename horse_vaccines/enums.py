"""Enumerations for the horse vaccination tracker."""

from enum import Enum


class VaccineType(Enum):
    """Vaccines tracked under the national equine protocol.

    Values match the codes stored with each vaccination event ('GRIPPE' for
    equine influenza, 'RHINO' for rhinopneumonitis).
    """

    INFLUENZA = "GRIPPE"
    RHINO = "RHINO"

    @classmethod
    def from_string(cls, value: str | None) -> "VaccineType":
        """Convert a stored code or member name to VaccineType.

        Parameters
        ----------
        value : str | None
            Vaccine code ('GRIPPE', 'RHINO') or member name ('influenza').
            Case-insensitive.

        Returns
        -------
        VaccineType
            Corresponding VaccineType enum.

        Raises
        ------
        ValueError
            If value is None or not a known vaccine.

        Examples
        --------
        >>> VaccineType.from_string('grippe')
        <VaccineType.INFLUENZA: 'GRIPPE'>

        >>> VaccineType.from_string('influenza')
        <VaccineType.INFLUENZA: 'GRIPPE'>
        """
        if value is not None:
            value_upper = str(value).strip().upper()
            for vaccine in cls:
                if value_upper in (vaccine.value, vaccine.name):
                    return vaccine

        raise ValueError(
            f"Unknown vaccine type: {value}. "
            f"Valid options: {', '.join(v.value for v in cls)}"
        )


class DueStatus(Enum):
    """Status of one vaccine track relative to today.

    Values are the status codes shown by the stable's dashboard.

    Attributes
    ----------
    NOT_STARTED : str
        No dose ever recorded ('a_faire').
    OVERDUE : str
        Next dose date is in the past ('en_retard').
    DUE_SOON : str
        Next dose is due within the 30-day window, today included ('bientot').
    UP_TO_DATE : str
        Next dose is more than 30 days away ('a_jour').
    """

    NOT_STARTED = "a_faire"
    OVERDUE = "en_retard"
    DUE_SOON = "bientot"
    UP_TO_DATE = "a_jour"

    @property
    def rank(self) -> int:
        """Urgency rank, lower is more urgent.

        OVERDUE < DUE_SOON < NOT_STARTED < UP_TO_DATE.
        """
        return _STATUS_RANK[self]

    @property
    def needs_action(self) -> bool:
        """True for statuses listed in the dashboard's upcoming feed."""
        return self in (DueStatus.OVERDUE, DueStatus.DUE_SOON)

    @classmethod
    def most_urgent(cls, *statuses: "DueStatus") -> "DueStatus":
        """Return the most urgent of the given statuses."""
        if not statuses:
            raise ValueError("most_urgent() requires at least one status")
        return min(statuses, key=lambda status: status.rank)


_STATUS_RANK = {
    DueStatus.OVERDUE: 0,
    DueStatus.DUE_SOON: 1,
    DueStatus.NOT_STARTED: 2,
    DueStatus.UP_TO_DATE: 3,
}


class PriorityBucket(Enum):
    """Priority section of the horse-list page, in display order."""

    URGENT = "urgent"
    SOON = "soon"
    RHINO_TODO = "rhino_todo"
    OK = "ok"


class DoseKind(Enum):
    """Phase of a vaccination programme reached by a dose count."""

    PRIMO = "primo"
    BOOSTER = "rappel"


class Language(Enum):
    """Supported display languages for labels and dates.

    Attributes
    ----------
    FRENCH : str
        French language code ('fr'). Default for the stable's reports.
    ENGLISH : str
        English language code ('en').
    """

    FRENCH = "fr"
    ENGLISH = "en"

    @classmethod
    def from_string(cls, value: str | None) -> "Language":
        """Convert string to Language enum.

        Parameters
        ----------
        value : str | None
            Language code ('fr', 'en'), or None for default (FRENCH).
            Case-insensitive.

        Returns
        -------
        Language
            Corresponding Language enum value.

        Raises
        ------
        ValueError
            If value is not a valid language code.
        """
        if value is None:
            return cls.FRENCH

        value_lower = value.lower()
        for lang in cls:
            if lang.value == value_lower:
                return lang

        raise ValueError(
            f"Unsupported language: {value}. "
            f"Valid options: {', '.join(lang.value for lang in cls)}"
        )

    @classmethod
    def all_codes(cls) -> set[str]:
        """Get set of all supported language codes."""
        return {lang.value for lang in cls}

    @property
    def locale(self) -> str:
        """Babel locale used for date formatting."""
        return {Language.FRENCH: "fr_FR", Language.ENGLISH: "en_US"}[self]
