"""Clover XML format parser.

Clover is used by multiple tools:
- PHP: phpunit --coverage-clover
- Kotlin: kover
- JavaScript: istanbul's clover reporter

Structure:
<coverage generated="..." clover="...">
  <project timestamp="...">
    <metrics ...aggregate stats.../>
    <package name="com.example">
      <file name="Foo.php" path="/path/to/Foo.php">
        <class name="FooClass" .../>
        <line num="1" type="stmt" count="1"/>
        <line num="5" type="cond" count="0" truecount="1" falsecount="0"/>
        <line num="10" type="method" name="bar" count="2"/>
        <metrics ...file stats.../>
      </file>
    </package>
  </project>
</coverage>

Every <line> (stmt, cond, method) counts as one statement.
"""

from coverplane.coverage.models import Coverage, CoverageBuilder, FormatMismatchError

from .base import int_attr, parse_xml


class CloverParser:
    """Parser for Clover XML format."""

    @property
    def format_id(self) -> str:
        return "clover"

    @property
    def default_filenames(self) -> tuple[str, ...]:
        return ("clover.xml", "coverage/clover.xml", "coverage-clover.xml")

    def parse(self, data: bytes, *, root: str | None = None) -> Coverage:  # noqa: ARG002
        """Parse Clover XML into Coverage."""
        doc = parse_xml(data, self.format_id, "coverage")
        project = doc.find("project")
        if project is None:
            raise FormatMismatchError(self.format_id, "no <project> element")

        builder = CoverageBuilder(self.format_id)

        for file_elem in project.iter("file"):
            file_path = file_elem.get("path") or file_elem.get("name", "")
            if not file_path:
                continue
            builder.add_file(file_path)

            for line in file_elem.findall("line"):
                num = int_attr(line, "num", self.format_id)
                if num <= 0:
                    continue
                count = int_attr(line, "count", self.format_id, default=0)
                builder.add_line(file_path, num, count)

        return builder.build()
