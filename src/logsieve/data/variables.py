"""
CI variables announced inside a log.

CI jobs can print lines of the exact form ``[NAME=value]`` to tell log
consumers which job produced the log. Only the first occurrence of each
variable counts.
"""

from typing import Dict, Iterable, Optional

from pydantic import BaseModel

JOB_NAME_VARIABLE = "CI_JOB_NAME"
PR_NUMBER_VARIABLE = "CI_PR_NUMBER"
# URL of a documentation page about the job.
JOB_DOC_URL_VARIABLE = "CI_JOB_DOC_URL"


def extract_variable(line: str, name: str) -> Optional[str]:
    """
    Return the value of ``[name=value]`` if ``line`` is exactly that form.
    
    Example:
        >>> extract_variable("[CI_JOB_NAME=x86_64-gnu]", "CI_JOB_NAME")
        'x86_64-gnu'
    """
    if not line.startswith("[") or not line.endswith("]"):
        return None
    equals = line.find("=")
    if equals == -1 or line[1:equals] != name:
        return None
    return line[equals + 1:-1]


class LogVariables(BaseModel):
    """Job metadata scraped from a log."""
    
    job_name: Optional[str] = None
    pr_number: Optional[str] = None
    doc_url: Optional[str] = None
    
    @classmethod
    def extract(cls, lines: Iterable[str]) -> "LogVariables":
        found: Dict[str, Optional[str]] = {
            JOB_NAME_VARIABLE: None,
            PR_NUMBER_VARIABLE: None,
            JOB_DOC_URL_VARIABLE: None,
        }
        
        for line in lines:
            line = line.strip()
            for name, value in found.items():
                if value is None:
                    found[name] = extract_variable(line, name)
            
            # Early exit if everything was found
            if all(value is not None for value in found.values()):
                break
        
        return cls(
            job_name=found[JOB_NAME_VARIABLE],
            pr_number=found[PR_NUMBER_VARIABLE],
            doc_url=found[JOB_DOC_URL_VARIABLE],
        )
    
    def as_dict(self) -> Dict[str, str]:
        """Only the variables that were found."""
        return {key: value for key, value in self.model_dump().items() if value is not None}
