"""Static knowledge base used for retrieval-augmented answers."""

KNOWLEDGE_BASE = """
# Professional Profile
Luis Gimenez is a Software Engineer II at The Home Depot. He specializes in high-throughput payment systems, distributed architectures, observability, and performance optimization.

## Core Competencies
- **Languages**: Go, Java, TypeScript, JavaScript, Python, C#, C++.
- **Databases**: CockroachDB, PostgreSQL, MongoDB.
- **Tools & Cloud**: Docker, Git, Google Cloud Platform (GCP Professional Architect), Spring Boot, React, Angular, GraphQL.
- **Testing & Monitoring**: Ginkgo, Gomega, JUnit, Cypress, Prometheus, Grafana, Jaeger.
- **Methodologies**: Agile/Scrum, SDLC, TDD, ITIL.

## Experience

### Software Engineer II - The Home Depot (April 2022 - Present)
- Engineer on the payment card tender system processing 5+ million daily transactions.
- Contributed production code to Card Broker (credit/debit routing) and owns interrupt rotation for production reliability.
- Built Grafana observability dashboards adopted by VP-level leadership.
- Advocated for and implemented PII masking for PCI DSS compliance.

### Web Developer - Menez Enterprises (Sept 2015 - April 2022)
- Built cross-device accessible web applications with fast load times.
- Developed a custom client dashboard that reduced support tickets by 30%.

## Education
- **Bachelor of Science in Software Development** - Western Governors University (2020 - 2021)

## Certifications
- **GCP Professional Cloud Architect**
- **CompTIA Project+**
- **ITIL Foundation Certificate in IT Service Management**
- **CIW User Interface Designer**

## Projects
- **Stock Trading Journal**: Go microservices backend with a React frontend and real-time data processing.
- **KiwiBug**: Full-stack issue tracking system (Spring Boot, React).
- **Inventory Management System**: Spring Boot and React.
- **Multi-Timezone Scheduler**: Java and JavaFX.

## Chat Infrastructure
- This portfolio chat is powered by gpt-oss running locally on a MacBook Pro M4 Max (128GB) behind an OpenAI-compatible endpoint.
- Raspberry Pi, Zero 2 W and Pico boards are hobby hardware for agent experiments, not the production chat host.

## Contact
- **Email**: luisgimenezdev@gmail.com
- **GitHub**: github.com/menezmethod
- **LinkedIn**: linkedin.com/in/gimenezdev
- **Portfolio**: gimenez.dev
"""
