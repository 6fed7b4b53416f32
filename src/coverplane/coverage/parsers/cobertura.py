"""Cobertura XML format parser.

Cobertura XML is used by many coverage tools across languages:
- Python: coverage.py
- .NET: coverlet
- Go: gocover-cobertura
- JavaScript: istanbul's cobertura reporter

Structure:
<coverage line-rate="0.85" branch-rate="0.50" ...>
  <sources>
    <source>/home/user/project</source>
  </sources>
  <packages>
    <package name="..." line-rate="...">
      <classes>
        <class name="..." filename="..." line-rate="...">
          <methods>...</methods>
          <lines>
            <line number="1" hits="1" branch="false"/>
            <line number="2" hits="0" branch="true" condition-coverage="50% (1/2)"/>
          </lines>
        </class>
      </classes>
    </package>
  </packages>
</coverage>

The line-rate / branch-rate attributes are producer-rounded summaries and are
ignored; totals are recomputed from <line> elements.
"""

from coverplane.coverage.models import Coverage, CoverageBuilder, FormatMismatchError

from .base import int_attr, parse_xml


class CoberturaParser:
    """Parser for Cobertura XML format."""

    @property
    def format_id(self) -> str:
        return "cobertura"

    @property
    def default_filenames(self) -> tuple[str, ...]:
        return ("coverage.xml", "cobertura.xml", "coverage.cobertura.xml", "cobertura-coverage.xml")

    def parse(self, data: bytes, *, root: str | None = None) -> Coverage:  # noqa: ARG002
        """Parse Cobertura XML into Coverage."""
        doc = parse_xml(data, self.format_id, "coverage")
        # Clover also uses a <coverage> root; Cobertura has <packages>/<sources>
        if doc.find("packages") is None and doc.find("sources") is None:
            raise FormatMismatchError(self.format_id, "no <packages> element")

        builder = CoverageBuilder(self.format_id)

        for cls in doc.iter("class"):
            filename = cls.get("filename", "")
            if not filename:
                continue
            builder.add_file(filename)

            # Class-level lines only; method lines repeat them
            for line in cls.findall("./lines/line"):
                line_num = int_attr(line, "number", self.format_id)
                hits = int_attr(line, "hits", self.format_id, default=0)
                builder.add_line(filename, line_num, hits)

        return builder.build()

