"""Built-in action handlers.

Importing this package registers every built-in action in the global
registry (see ``actiongraph.registry``).
"""

from actiongraph.library.core import echo, write_file
from actiongraph.library.http import HttpGetAction, http_get
from actiongraph.library.llm import complete, llm_model
from actiongraph.library.transform import jq, xml2json, xml_to_dict

__all__ = [
    "HttpGetAction",
    "complete",
    "echo",
    "http_get",
    "jq",
    "llm_model",
    "write_file",
    "xml2json",
    "xml_to_dict",
]
