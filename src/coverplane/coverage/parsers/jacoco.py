"""JaCoCo XML format parser.

JaCoCo is the standard Java/Kotlin coverage tool, used via Maven and Gradle.

Structure:
<report name="...">
  <package name="com/example">
    <class name="com/example/Foo" sourcefilename="Foo.java">
      <method name="bar" desc="()V" line="10">
        <counter type="LINE" missed="5" covered="10"/>
      </method>
    </class>
    <sourcefile name="Foo.java">
      <line nr="1" mi="0" ci="1" mb="0" cb="0"/>
      <line nr="2" mi="1" ci="0" mb="1" cb="1"/>
    </sourcefile>
  </package>
  <counter type="LINE" missed="100" covered="400"/>
</report>

Per-line data comes from <sourcefile>/<line>: a line is one statement,
covered when any of its instructions (ci) ran. Reports generated without
debug line info only carry class counters; those have no line numbers to
report and yield files with zero statements.
"""

from coverplane.coverage.models import Coverage, CoverageBuilder

from .base import int_attr, parse_xml


class JacocoParser:
    """Parser for JaCoCo XML format."""

    @property
    def format_id(self) -> str:
        return "jacoco"

    @property
    def default_filenames(self) -> tuple[str, ...]:
        return (
            "jacoco.xml",
            "jacocoTestReport.xml",
            "build/reports/jacoco/test/jacocoTestReport.xml",
            "target/site/jacoco/jacoco.xml",
        )

    def parse(self, data: bytes, *, root: str | None = None) -> Coverage:  # noqa: ARG002
        """Parse JaCoCo XML into Coverage."""
        doc = parse_xml(data, self.format_id, "report")
        builder = CoverageBuilder(self.format_id)

        for package in doc.iter("package"):
            package_path = package.get("name", "")

            for sourcefile in package.findall("sourcefile"):
                filename = sourcefile.get("name", "")
                if not filename:
                    continue
                file_path = f"{package_path}/{filename}" if package_path else filename
                builder.add_file(file_path)

                for line in sourcefile.findall("line"):
                    nr = int_attr(line, "nr", self.format_id)
                    mi = int_attr(line, "mi", self.format_id, default=0)
                    ci = int_attr(line, "ci", self.format_id, default=0)
                    # Lines without instructions are not executable
                    if mi == 0 and ci == 0:
                        continue
                    builder.add_line(file_path, nr, ci)

        return builder.build()
